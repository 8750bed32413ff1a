"""Configuration module for reqbus."""

from .logging import LoggingSettings
from .settings import ConfigurationError, MediatorSettings, get_settings


__all__ = ["ConfigurationError", "LoggingSettings", "MediatorSettings", "get_settings"]
