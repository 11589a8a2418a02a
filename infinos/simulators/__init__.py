from infinos.simulators.registry import SimulationRegistry
from infinos.simulators.simulation_handle import SimulationHandle

__all__ = [
    'SimulationHandle',
    'SimulationRegistry',
]
