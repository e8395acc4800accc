"""Configuration package exports."""

from .loader import ConfigRepository, MonitorPaths
from .models import DEFAULT_USER_AGENT, GlobalConfig, SelectorSet

__all__ = [
    "ConfigRepository",
    "DEFAULT_USER_AGENT",
    "GlobalConfig",
    "MonitorPaths",
    "SelectorSet",
]
