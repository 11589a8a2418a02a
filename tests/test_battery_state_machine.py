"""Tests for infinos.controllers.battery_state_machine."""
import random

import pytest

from infinos.components import BagDevice
from infinos.controllers import BatteryStateMachine


class TestConstruction:
    def test_default_range(self):
        m = BatteryStateMachine()
        assert (m.drain_min, m.drain_max) == (1, 3)

    @pytest.mark.parametrize("lo,hi", [(0, 3), (3, 1), (-1, 2)])
    def test_invalid_range_rejected(self, lo, hi):
        with pytest.raises(ValueError):
            BatteryStateMachine(drain_min=lo, drain_max=hi)

    def test_step_within_range(self):
        m = BatteryStateMachine(drain_min=1, drain_max=3, rng=random.Random(1))
        steps = {m.next_step() for _ in range(200)}
        assert steps <= {1, 2, 3}
        assert len(steps) == 3


class TestClassify:
    def test_unclaimed_is_idle(self):
        m = BatteryStateMachine()
        assert m.classify(BagDevice("X", is_claimed=False, status=True, battery_level=50)) == m.IDLE

    def test_claimed_on(self):
        m = BatteryStateMachine()
        assert m.classify(BagDevice("X", is_claimed=True, status=True, battery_level=50)) == m.RUNNING

    def test_claimed_off(self):
        m = BatteryStateMachine()
        assert m.classify(BagDevice("X", is_claimed=True, status=False, battery_level=50)) == m.OFF

    def test_empty_battery(self):
        m = BatteryStateMachine()
        assert m.classify(BagDevice("X", is_claimed=True, status=False, battery_level=0)) == m.DEPLETED


class TestAdvance:
    def test_unclaimed_never_changes(self, machine):
        for status in (True, False):
            for level in (0, 1, 50, 100):
                device = BagDevice("X", is_claimed=False, status=status, battery_level=level)
                assert machine.advance(device) == (machine.IDLE, {})

    def test_off_leaves_battery(self, machine):
        device = BagDevice("X", is_claimed=True, status=False, battery_level=42)
        assert machine.advance(device) == (machine.OFF, {})

    def test_running_drains_within_bounds(self, machine):
        for level in range(1, 101):
            device = BagDevice("X", is_claimed=True, status=True, battery_level=level)
            state, fields = machine.advance(device)
            new_level = fields["battery_charge_level"]
            assert max(0, level - 3) <= new_level <= level - 1
            if new_level > 0:
                assert state == machine.RUNNING
                assert "status" not in fields

    def test_explicit_step(self, machine):
        device = BagDevice("X", is_claimed=True, status=True, battery_level=50)
        assert machine.advance(device, step=2) == (machine.RUNNING, {"battery_charge_level": 48})

    def test_reaching_zero_forces_off(self, machine):
        device = BagDevice("X", is_claimed=True, status=True, battery_level=2)
        state, fields = machine.advance(device, step=3)
        assert state == machine.DEPLETED
        assert fields == {"battery_charge_level": 0, "status": False}

    def test_depleted_stays_put(self, machine):
        device = BagDevice("X", is_claimed=True, status=False, battery_level=0)
        for _ in range(5):
            assert machine.advance(device) == (machine.DEPLETED, {})

    def test_switched_on_while_empty_is_forced_off(self, machine):
        device = BagDevice("X", is_claimed=True, status=True, battery_level=0)
        assert machine.advance(device) == (machine.DEPLETED, {"status": False})

    def test_drain_sequence_from_ten(self):
        m = BatteryStateMachine(drain_min=3, drain_max=3)
        device = BagDevice("A", is_claimed=True, status=True, battery_level=10)
        levels = []
        for _ in range(4):
            _, fields = m.advance(device)
            device = device.with_fields(fields)
            levels.append(device.battery_level)
        assert levels == [7, 4, 1, 0]
        assert device.status is False

    def test_state_matches_classify_without_drain(self, machine):
        for claimed in (True, False):
            for status in (True, False):
                for level in (0, 50):
                    device = BagDevice("X", is_claimed=claimed, status=status, battery_level=level)
                    if machine.classify(device) == machine.RUNNING:
                        continue
                    assert machine.advance(device)[0] == machine.classify(device)
