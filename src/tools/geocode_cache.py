"""
Read-through geocode cache.

Keys are normalized place strings. Successful lookups are stored in a
pluggable backend; failures are never stored so a later call can retry.
Concurrent lookups of the same place share a single provider request.
"""

import asyncio
import json
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

import structlog
from pydantic import BaseModel, ValidationError

from src.core.config import ConfigManager, get_config
from src.data.models.route import Coordinates
from src.tools.geocoding import GeocodingProvider


def normalize_place(place: str) -> str:
    """Trim, lowercase and collapse internal whitespace."""
    return " ".join(place.split()).lower()


class GeocodeCacheEntry(BaseModel):
    """Cached coordinates and when they were stored (epoch seconds)."""

    coords: Coordinates
    stored_at: float


class CacheBackend(Protocol):
    """Key-value storage behind the geocode cache."""

    def get(self, key: str) -> Optional[GeocodeCacheEntry]:
        ...

    def set(self, key: str, entry: GeocodeCacheEntry) -> None:
        ...


class InMemoryCacheBackend:
    """Plain dict storage; lives as long as the owning session."""

    def __init__(self) -> None:
        self._entries: dict[str, GeocodeCacheEntry] = {}

    def get(self, key: str) -> Optional[GeocodeCacheEntry]:
        return self._entries.get(key)

    def set(self, key: str, entry: GeocodeCacheEntry) -> None:
        self._entries[key] = entry

    def __len__(self) -> int:
        return len(self._entries)


class JsonFileCacheBackend:
    """
    JSON file storage, for sharing resolved places across process restarts.

    The whole file is rewritten on every store, via a temporary file that
    replaces the original. Unreadable files and entries are ignored and
    treated as misses.
    """

    def __init__(
        self,
        path: Path,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self.path = Path(path)
        self.logger = logger or structlog.get_logger(__name__)
        self._entries: dict[str, GeocodeCacheEntry] = self._read()
        self._lock = threading.Lock()

    def _read(self) -> dict[str, GeocodeCacheEntry]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            self.logger.warning("geocode_cache_file_unreadable", path=str(self.path), error=str(exc))
            return {}
        if not isinstance(raw, dict):
            return {}

        entries = {}
        for key, value in raw.items():
            try:
                entries[key] = GeocodeCacheEntry.model_validate(value)
            except ValidationError:
                self.logger.warning("geocode_cache_entry_invalid", key=key)
        return entries

    def get(self, key: str) -> Optional[GeocodeCacheEntry]:
        return self._entries.get(key)

    def set(self, key: str, entry: GeocodeCacheEntry) -> None:
        with self._lock:
            self._entries[key] = entry
            payload = {k: v.model_dump(mode="json") for k, v in self._entries.items()}
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(payload, f, indent=2)
                Path(tmp_name).replace(self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    def __len__(self) -> int:
        return len(self._entries)


class GeocodeCache:
    """
    Session-scoped geocode cache over an injected provider and backend.

    Args:
        provider: Geocoding provider queried on a miss
        backend: Storage for resolved places (defaults to in-memory)
        ttl_seconds: Entry lifetime; None keeps entries for the whole session
        clock: Time source returning epoch seconds
    """

    def __init__(
        self,
        provider: GeocodingProvider,
        backend: Optional[CacheBackend] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self.provider = provider
        self.backend = backend if backend is not None else InMemoryCacheBackend()
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.logger = logger or structlog.get_logger(__name__)
        self._in_flight: dict[str, asyncio.Task] = {}
        self.provider_calls = 0

    @classmethod
    def from_config(
        cls,
        provider: GeocodingProvider,
        config_manager: Optional[ConfigManager] = None,
    ) -> "GeocodeCache":
        """Build a cache using the configured TTL and optional GEOCODE_CACHE_PATH."""
        config_manager = config_manager or get_config()
        cache_path = config_manager.env.geocode_cache_path
        backend: CacheBackend = (
            JsonFileCacheBackend(Path(cache_path)) if cache_path else InMemoryCacheBackend()
        )
        return cls(
            provider=provider,
            backend=backend,
            ttl_seconds=config_manager.get_geocoding_config().cache_ttl_seconds,
        )

    def lookup(self, place: str) -> Optional[Coordinates]:
        """Cached coordinates for a place without calling the provider."""
        key = normalize_place(place)
        entry = self.backend.get(key)
        if entry is None:
            return None
        if self.ttl_seconds is not None and self.clock() - entry.stored_at >= self.ttl_seconds:
            return None
        return entry.coords

    async def resolve(self, place: str) -> Optional[Coordinates]:
        """
        Coordinates for a place, or None when it cannot be geocoded.

        Never raises for provider failures.
        """
        key = normalize_place(place)
        if not key:
            return None

        cached = self.lookup(key)
        if cached is not None:
            self.logger.debug("geocode_cache_hit", place=key)
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key))
            self._in_flight[key] = task
            task.add_done_callback(lambda _done, k=key: self._in_flight.pop(k, None))
        else:
            self.logger.debug("geocode_request_coalesced", place=key)

        # A cancelled caller must not cancel the shared lookup
        return await asyncio.shield(task)

    async def _fetch(self, key: str) -> Optional[Coordinates]:
        self.provider_calls += 1
        try:
            coords = await self.provider.geocode(key)
        except Exception as exc:
            self.logger.warning("geocode_failed", place=key, error=str(exc))
            return None

        if coords is None:
            self.logger.warning("geocode_failed", place=key, error="no result")
            return None

        entry = GeocodeCacheEntry(coords=coords, stored_at=self.clock())
        # Backends may block on disk
        try:
            await asyncio.to_thread(self.backend.set, key, entry)
        except OSError as exc:
            self.logger.warning("geocode_cache_store_failed", place=key, error=str(exc))
            return coords
        self.logger.info("geocode_cached", place=key, lat=coords.lat, lng=coords.lng)
        return coords
