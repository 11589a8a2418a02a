"""Error types shared by the device store and the simulation engine."""


class SimulationError(Exception):
    """Base class for every error raised by the engine or the store."""


class DeviceNotFound(SimulationError):
    def __init__(self, code):
        super().__init__(f"Device {code} not found")
        self.code = code


class AlreadyRunning(SimulationError):
    def __init__(self, code):
        super().__init__(f"Simulation for {code} is already running")
        self.code = code


class NotRunning(SimulationError):
    def __init__(self, code):
        super().__init__(f"No simulation running for {code}")
        self.code = code


class StoreUnavailable(SimulationError):
    """Transient store failure (timeout, connection error, 5xx)."""


class ConflictError(SimulationError):
    """The store rejected a write because the record changed or already exists."""


class ShuttingDown(SimulationError):
    """The engine is shutting down and accepts no new simulations."""
