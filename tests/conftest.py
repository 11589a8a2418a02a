"""Shared fixtures for the simulation engine tests."""
import random
import time

import pytest

from infinos.components import BagDevice
from infinos.controllers import BatteryStateMachine, SimulationEngine
from infinos.simulators import SimulationRegistry
from infinos.store import InMemoryDeviceStore


class FixedStepMachine(BatteryStateMachine):
    """State machine whose random step is always the same value."""

    def __init__(self, step):
        super().__init__(drain_min=step, drain_max=step)


class RecordingPublisher:
    def __init__(self):
        self.items = []

    def enqueue(self, item):
        self.items.append(item)


@pytest.fixture
def devices():
    return [
        BagDevice("A", is_claimed=True, status=True, battery_level=10),
        BagDevice("B", is_claimed=False, status=False, battery_level=100),
    ]


@pytest.fixture
def store(devices):
    return InMemoryDeviceStore(devices)


@pytest.fixture
def registry():
    return SimulationRegistry()


@pytest.fixture
def machine():
    return BatteryStateMachine(drain_min=1, drain_max=3, rng=random.Random(7))


@pytest.fixture
def engine(store, registry):
    # long interval: tests drive ticks by hand unless they say otherwise
    eng = SimulationEngine(
        store, registry,
        state_machine=FixedStepMachine(3),
        tick_interval_ms=60_000,
        store_timeout=0.1,
    )
    yield eng
    eng.stop_all_simulations()


@pytest.fixture
def wait_for():
    def _wait(predicate, timeout=2.0, interval=0.005):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()
    return _wait
