# scopepost/config/__init__.py

"""
Configuration management for scopepost.

This package handles loading configuration from files (TOML),
environment variables, and internal defaults, providing a unified
configuration object.
"""

from .models import (
    ScopeConfig,
    ScopeSettings,
    PostProcessingSettings,
    ChannelVoltageSettings,
    ChannelSpectrumSettings,
)
from .loaders import load_configuration

__all__ = [
    "ScopeConfig",
    "ScopeSettings",
    "PostProcessingSettings",
    "ChannelVoltageSettings",
    "ChannelSpectrumSettings",
    "load_configuration",
]
