"""Registry of running simulation handles, keyed by device code"""

import threading

from infinos.errors import AlreadyRunning, NotRunning, ShuttingDown


class SimulationRegistry:
    """
    The single authoritative map device_code -> SimulationHandle.

    Every read and write of the map happens under one lock, and reads
    return copies, so callers never observe a half-applied mutation.
    Handles are stopped outside the lock; a handle can only be detached
    from the map once, so it is never stopped by two callers.
    """

    def __init__(self):
        self._lock    = threading.Lock()
        self._handles = {}
        self._closed  = False

    def register(self, code, handle):
        with self._lock:
            if self._closed:
                raise ShuttingDown(f"Registry closed, not starting {code}")
            if code in self._handles:
                raise AlreadyRunning(code)
            self._handles[code] = handle

    def unregister(self, code):
        """Remove and return the handle for code, or None if absent."""
        with self._lock:
            return self._handles.pop(code, None)

    def get(self, code):
        with self._lock:
            handle = self._handles.get(code)
        if handle is None:
            raise NotRunning(code)
        return handle

    def list_running(self):
        with self._lock:
            return sorted(self._handles)

    def stop_all(self, close=False):
        """
        Detach every handle, clear the map, then stop each one.
        With close=True the registry also refuses any later register().
        Returns the codes stopped.
        """
        with self._lock:
            if close:
                self._closed = True
            detached = list(self._handles.items())
            self._handles.clear()
        for code, handle in detached:
            try:
                handle.stop()
            except Exception as exc:
                print(f"[ERROR] Failed to stop {code}: {exc}")
        return [code for code, _ in detached]

    def __len__(self):
        with self._lock:
            return len(self._handles)

    def __contains__(self, code):
        with self._lock:
            return code in self._handles

    @property
    def closed(self):
        with self._lock:
            return self._closed
