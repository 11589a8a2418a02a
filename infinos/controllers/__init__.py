from infinos.controllers.battery_state_machine import BatteryStateMachine
from infinos.controllers.simulation_engine import SimulationEngine

__all__ = [
    'BatteryStateMachine',
    'SimulationEngine',
]
