"""
External integrations for the load economics engine.

This module provides:
- Geocoding provider (Google Maps Geocoding API)
- Session-scoped geocode cache with pluggable storage
"""

from .geocode_cache import (
    CacheBackend,
    GeocodeCache,
    GeocodeCacheEntry,
    InMemoryCacheBackend,
    JsonFileCacheBackend,
    normalize_place,
)
from .geocoding import GeocodingProvider, GoogleMapsGeocoder

__all__ = [
    "GeocodingProvider",
    "GoogleMapsGeocoder",
    "CacheBackend",
    "GeocodeCache",
    "GeocodeCacheEntry",
    "InMemoryCacheBackend",
    "JsonFileCacheBackend",
    "normalize_place",
]
