"""In-process device store used for local runs and tests"""

import threading

from infinos.components import BagDevice
from infinos.errors import ConflictError, DeviceNotFound


class InMemoryDeviceStore:
    """
    Thread-safe dict-backed implementation of the device store contract.

    `writes` records every successful update as (code, fields) so callers
    can assert exactly which round-trips happened.
    """

    def __init__(self, devices=None):
        self._lock    = threading.Lock()
        self._devices = {}
        self.writes   = []
        for device in devices or []:
            self._devices[device.code] = device

    def list_devices(self):
        with self._lock:
            return list(self._devices.values())

    def get_device(self, code):
        with self._lock:
            device = self._devices.get(code)
        if device is None:
            raise DeviceNotFound(code)
        return device

    def update_device(self, code, fields):
        with self._lock:
            device = self._devices.get(code)
            if device is None:
                raise DeviceNotFound(code)
            updated = device.with_fields(fields)
            self._devices[code] = updated
            self.writes.append((code, dict(fields)))
            return updated

    def create_device(self, fields):
        device = BagDevice.from_record(fields)
        with self._lock:
            if device.code in self._devices:
                raise ConflictError(f"Device code {device.code} already exists")
            self._devices[device.code] = device
        return device

    def put(self, device):
        """Replace a record directly, bypassing the write log (external edits)."""
        with self._lock:
            self._devices[device.code] = device
