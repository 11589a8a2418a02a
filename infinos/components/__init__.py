from infinos.components.device import BagDevice, clamp_battery

__all__ = [
    'BagDevice',
    'clamp_battery',
]
