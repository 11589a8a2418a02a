"""
Battery State Machine for simulated bag devices.

States:
  IDLE      - device is unclaimed; ticks never touch it
  RUNNING   - claimed, powered on, battery draining
  OFF       - claimed, powered off; battery untouched
  DEPLETED  - battery at 0, power forced off; further ticks leave it at 0

Per-tick transitions (always computed from the latest snapshot):
  unclaimed                      -> IDLE      (no change)
  status off, battery > 0        -> OFF       (no change)
  status off, battery == 0       -> DEPLETED  (no change)
  status on,  battery > step     -> RUNNING   (battery -= step)
  status on,  battery <= step    -> DEPLETED  (battery = 0, status = off)
"""

import random


class BatteryStateMachine:
    """
    Pure transition logic; holds no per-device state.

    Parameters:
        drain_min (int)           - smallest battery step per tick (percent)
        drain_max (int)           - largest battery step per tick (percent)
        rng       (random.Random) - source for the step, seedable for tests
    """

    IDLE     = 'IDLE'
    RUNNING  = 'RUNNING'
    OFF      = 'OFF'
    DEPLETED = 'DEPLETED'

    def __init__(self, drain_min=1, drain_max=3, rng=None):
        drain_min = int(drain_min)
        drain_max = int(drain_max)
        if drain_min < 1 or drain_max < drain_min:
            raise ValueError(f"Invalid drain range {drain_min}..{drain_max}")
        self.drain_min = drain_min
        self.drain_max = drain_max
        self._rng      = rng or random.Random()

    # ========== PUBLIC API ==========

    def classify(self, device):
        """Return the state a snapshot is in without advancing it."""
        if not device.is_claimed:
            return self.IDLE
        if device.battery_level <= 0:
            return self.DEPLETED
        if not device.status:
            return self.OFF
        return self.RUNNING

    def next_step(self):
        return self._rng.randint(self.drain_min, self.drain_max)

    def advance(self, device, step=None):
        """
        Compute one tick.
        Returns (next_state, fields) where fields holds only the store
        columns that change; an empty dict means nothing to write.
        """
        state = self.classify(device)
        if state in (self.IDLE, self.OFF):
            return state, {}
        if state == self.DEPLETED:
            # switched back on externally while empty
            return state, ({'status': False} if device.status else {})

        if step is None:
            step = self.next_step()
        level = max(0, device.battery_level - int(step))
        if level == 0:
            return self.DEPLETED, {'battery_charge_level': 0, 'status': False}
        return self.RUNNING, {'battery_charge_level': level}
