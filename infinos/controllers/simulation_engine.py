"""Simulation engine - boot recovery, control surface and shutdown for bag simulations"""

from infinos.controllers.battery_state_machine import BatteryStateMachine
from infinos.errors import AlreadyRunning, NotRunning, ShuttingDown, StoreUnavailable
from infinos.simulators import SimulationHandle


class SimulationEngine:
    """
    Orchestrates one SimulationHandle per simulated device.

    The registry is passed in, not created here, so the process owns
    exactly one instance and hands it to whoever needs it. Control-path
    calls raise typed errors to the caller; nothing in here stops the
    process.
    """

    def __init__(self, store, registry, state_machine=None, tick_interval_ms=5000,
                 publisher=None, store_timeout=5.0):
        self.store            = store
        self.registry         = registry
        self.state_machine    = state_machine or BatteryStateMachine()
        self.tick_interval_ms = int(tick_interval_ms)
        self.publisher        = publisher
        # one interval plus a read and a write round-trip
        self._join_timeout    = self.tick_interval_ms / 1000.0 + 2 * float(store_timeout) + 1.0

    @classmethod
    def from_settings(cls, sim_cfg, store, registry, publisher=None):
        machine = BatteryStateMachine(
            drain_min=sim_cfg.get('drain_min', 1),
            drain_max=sim_cfg.get('drain_max', 3),
        )
        return cls(
            store, registry,
            state_machine    = machine,
            tick_interval_ms = sim_cfg.get('tick_interval_ms', 5000),
            publisher        = publisher,
            store_timeout    = sim_cfg.get('store_timeout', 5.0),
        )

    # ========== BOOT ==========

    def initialize_all_simulations(self):
        """Start a simulation for every claimed device. Returns the codes started."""
        print("[ENGINE] Initializing simulations from device store...")
        try:
            devices = self.store.list_devices()
        except StoreUnavailable as exc:
            print(f"[ERROR] Could not load devices: {exc}")
            return []

        started = []
        for device in devices:
            if not device.is_claimed:
                continue
            if device.code in self.registry:
                continue
            try:
                self._launch(device.code)
            except AlreadyRunning:
                continue
            except ShuttingDown:
                print("[ENGINE] Shutdown in progress - boot recovery abandoned")
                break
            started.append(device.code)

        print(f"[ENGINE] {len(started)} simulation(s) started "
              f"({len(devices)} device(s) in store)")
        return started

    # ========== CONTROL ==========

    def start_simulation(self, code):
        """Raises DeviceNotFound, AlreadyRunning, ShuttingDown or StoreUnavailable."""
        self.store.get_device(code)
        return self._launch(code)

    def stop_simulation(self, code):
        handle = self.registry.unregister(code)
        if handle is None:
            raise NotRunning(code)
        handle.stop()

    def stop_all_simulations(self):
        """Stop every handle and wait for all of them. Returns the codes stopped."""
        stopped = self.registry.stop_all()
        print(f"[ENGINE] Stopped {len(stopped)} simulation(s)")
        return stopped

    def shutdown(self):
        """
        Stop every handle and refuse any later start. Used on process exit;
        start_simulation and claim_device raise ShuttingDown afterwards.
        """
        stopped = self.registry.stop_all(close=True)
        print(f"[ENGINE] Shut down, stopped {len(stopped)} simulation(s)")
        return stopped

    def get_running_simulations(self):
        return self.registry.list_running()

    def status(self):
        running = self.registry.list_running()
        return {
            'activeSimulations': len(running),
            'simulatingDevices': running,
        }

    # ========== CLAIM / UNCLAIM ==========

    def claim_device(self, code):
        """Mark the device claimed and start simulating it."""
        device = self.store.update_device(code, {'is_claimed': True})
        try:
            self._launch(code)
        except AlreadyRunning:
            pass
        return device

    def unclaim_device(self, code):
        """Mark the device unclaimed and stop simulating it."""
        device = self.store.update_device(code, {'is_claimed': False})
        try:
            self.stop_simulation(code)
        except NotRunning:
            pass
        return device

    # ========== INTERNAL ==========

    def _launch(self, code):
        handle = SimulationHandle(
            code,
            self.store,
            self.state_machine,
            tick_interval_ms = self.tick_interval_ms,
            publisher        = self.publisher,
            join_timeout     = self._join_timeout,
        )
        # registered before it starts so a duplicate never ticks
        self.registry.register(code, handle)
        handle.start()
        return handle
