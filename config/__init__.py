"""
Configuration for the cross-market correlation engine.
"""

from .settings import Settings, CorrelationThresholds, load_config

__all__ = [
    "Settings",
    "CorrelationThresholds",
    "load_config",
]
