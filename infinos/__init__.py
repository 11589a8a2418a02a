"""INFINOS bag backend: device API and battery simulation engine."""

__version__ = "1.0.0"
