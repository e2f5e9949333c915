"""
Exception types raised by the engine.

Business rules never raise; these cover configuration problems and the
external geocoding call.
"""


class EngineError(Exception):
    """Base class for engine errors."""


class ConfigurationError(EngineError):
    """Raised when config.yaml is present but malformed."""


class GeocodingError(EngineError):
    """Raised by a geocoding provider when an address cannot be resolved."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Geocoding failed for '{address}': {reason}")
        self.address = address
        self.reason = reason
