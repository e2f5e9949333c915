"""
Geocoding provider integration.

The engine's only contract with a provider is "give me coordinates for a
string"; providers raise GeocodingError when they cannot.
"""

from typing import Optional, Protocol

import httpx
import structlog

from src.core.config import ConfigManager, get_config
from src.core.exceptions import GeocodingError
from src.data.models.route import Coordinates

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


class GeocodingProvider(Protocol):
    """Resolves a free-text address to coordinates."""

    async def geocode(self, address: str) -> Coordinates:
        """Return coordinates for ``address`` or raise GeocodingError."""
        ...


class GoogleMapsGeocoder:
    """
    Google Maps Geocoding API client.

    Uses the first result, as the Maps JavaScript geocoder does.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
        region: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.timeout_seconds = timeout_seconds
        self.region = region
        self._client = client
        self.logger = logger or structlog.get_logger(__name__)

    @classmethod
    def from_config(
        cls,
        config_manager: Optional[ConfigManager] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "GoogleMapsGeocoder":
        """Build a geocoder from GOOGLE_MAPS_API_KEY and the geocoding config section."""
        config_manager = config_manager or get_config()
        geocoding = config_manager.get_geocoding_config()
        return cls(
            api_key=config_manager.get_api_key("google_maps"),
            timeout_seconds=geocoding.timeout_seconds,
            region=geocoding.region,
            client=client,
        )

    async def geocode(self, address: str) -> Coordinates:
        if not self.api_key:
            raise GeocodingError(address, "GOOGLE_MAPS_API_KEY not set")

        params = {"address": address, "key": self.api_key}
        if self.region:
            params["region"] = self.region

        try:
            if self._client is not None:
                response = await self._client.get(
                    GOOGLE_GEOCODE_URL, params=params, timeout=self.timeout_seconds
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.get(GOOGLE_GEOCODE_URL, params=params)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GeocodingError(address, f"request failed: {exc}") from exc

        status = body.get("status")
        results = body.get("results") or []
        if status != "OK" or not results:
            raise GeocodingError(address, str(status or "no results"))

        try:
            location = results[0]["geometry"]["location"]
            return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingError(address, "malformed response") from exc
