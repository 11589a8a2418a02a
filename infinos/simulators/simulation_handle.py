"""Simulation handle - one thread driving one bag device's battery simulation"""

import threading
import time


class SimulationHandle:
    """
    Owns the tick loop for a single device.

    The first tick fires one full interval after start(), then every
    interval after that. stop() sets the cancel token and joins the thread,
    so once it returns no further tick can write to the store.

    Parameters:
        device_code      (str)                 - device this handle drives
        store            (DeviceStore)         - read/write access to the record
        state_machine    (BatteryStateMachine) - per-tick transition logic
        tick_interval_ms (int)                 - cadence between ticks
        publisher        (TelemetryPublisher)  - optional telemetry sink
        join_timeout     (float)               - upper bound for stop() to wait
    """

    def __init__(self, device_code, store, state_machine, tick_interval_ms=5000,
                 publisher=None, join_timeout=None):
        self.device_code      = device_code
        self.tick_interval_ms = int(tick_interval_ms)
        self._store           = store
        self._state_machine   = state_machine
        self._publisher       = publisher
        self._join_timeout    = join_timeout

        self._cancel     = threading.Event()
        self._tick_lock  = threading.Lock()    # single-flight guard
        self._stop_lock  = threading.Lock()
        self._thread     = None

        self.state       = None
        self.ticks       = 0
        self.failures    = 0
        self.last_error  = None

    # ========== LIFECYCLE ==========

    def start(self):
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            name=f"sim-{self.device_code}",
            daemon=True,
        )
        self._thread.start()
        print(f"[SIM] {self.device_code} started (every {self.tick_interval_ms}ms)")

    def stop(self):
        """Cancel the tick loop and wait for it to halt. Safe to call twice."""
        with self._stop_lock:
            if self._cancel.is_set():
                return
            self._cancel.set()
            thread = self._thread
            if thread is not None and thread is not threading.current_thread():
                thread.join(timeout=self._join_timeout)
                if thread.is_alive():
                    print(f"[WARN] {self.device_code} tick still in flight after "
                          f"{self._join_timeout}s; its result will be discarded")
            print(f"[SIM] {self.device_code} stopped")

    @property
    def running(self):
        return (self._thread is not None
                and self._thread.is_alive()
                and not self._cancel.is_set())

    @property
    def stopped(self):
        return self._cancel.is_set()

    def _run(self):
        interval = self.tick_interval_ms / 1000.0
        while not self._cancel.wait(interval):
            self.tick()

    # ========== TICK ==========

    def tick(self):
        """
        Run one read -> transition -> write round.
        Returns True if the tick ran, False if it was skipped (stopped or
        another tick for this device is still in flight). Store failures
        are recorded and swallowed; the next tick starts from a fresh read.
        """
        if self._cancel.is_set():
            return False
        if not self._tick_lock.acquire(blocking=False):
            print(f"[SIM] {self.device_code} previous tick still running - skipped")
            return False
        try:
            self._tick_once()
            return True
        finally:
            self._tick_lock.release()

    def _tick_once(self):
        try:
            device = self._store.get_device(self.device_code)
            state, fields = self._state_machine.advance(device)
            if self._cancel.is_set():
                return
            if fields:
                device = self._store.update_device(self.device_code, fields)
        except Exception as exc:
            self._record_failure(exc)
            return

        self.ticks += 1
        if state != self.state:
            print(f"[SIM] {self.device_code} {self.state or 'START'} -> {state} "
                  f"(battery {device.battery_level}%)")
        self.state = state
        if self._cancel.is_set():
            return
        if state != self._state_machine.IDLE:
            self._publish(device, state)

    def _record_failure(self, exc):
        self.failures += 1
        self.last_error = exc
        print(f"[ERROR] {self.device_code} tick failed: {exc}")

    def _publish(self, device, state):
        if self._publisher is None:
            return
        self._publisher.enqueue({
            'device': device.code,
            'source': 'simulator',
            'sensor': 'BATTERY',
            'value': {
                'battery_level': device.battery_level,
                'status': device.status,
            },
            'state': state,
            'simulated': True,
            'ts': time.time(),
        })
