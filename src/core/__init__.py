"""
Core infrastructure for the load economics engine.

This module provides:
- Config: Configuration management
- Logging: structlog setup
- Exceptions: Engine error types
"""

from .config import ConfigManager, get_config
from .exceptions import ConfigurationError, EngineError, GeocodingError
from .logging import configure_logging

__all__ = [
    "ConfigManager",
    "get_config",
    "EngineError",
    "ConfigurationError",
    "GeocodingError",
    "configure_logging",
]
