"""Tests for the Google Maps geocoding provider."""

import asyncio

import httpx
import pytest

from src.core.config import ConfigManager
from src.core.exceptions import GeocodingError
from src.data.models.route import Coordinates
from src.tools.geocode_cache import GeocodeCache
from src.tools.geocoding import GOOGLE_GEOCODE_URL, GoogleMapsGeocoder

OK_BODY = {
    "status": "OK",
    "results": [{"geometry": {"location": {"lat": 32.7767, "lng": -96.797}}}],
}


def geocode_with(handler, address="Dallas, TX", **kwargs):
    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            geocoder = GoogleMapsGeocoder(api_key="test-key", client=client, **kwargs)
            return await geocoder.geocode(address)

    return asyncio.run(scenario())


def test_returns_first_result_location():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=OK_BODY)

    coords = geocode_with(handler, region="us")

    assert coords == Coordinates(lat=32.7767, lng=-96.797)
    request = seen[0]
    assert str(request.url).startswith(GOOGLE_GEOCODE_URL)
    assert request.url.params["address"] == "Dallas, TX"
    assert request.url.params["key"] == "test-key"
    assert request.url.params["region"] == "us"


@pytest.mark.parametrize(
    "body",
    [
        {"status": "ZERO_RESULTS", "results": []},
        {"status": "REQUEST_DENIED"},
        {"status": "OK", "results": []},
        {"status": "OK", "results": [{"geometry": {}}]},
    ],
)
def test_unusable_responses_raise(body):
    with pytest.raises(GeocodingError):
        geocode_with(lambda request: httpx.Response(200, json=body))


def test_http_errors_raise():
    with pytest.raises(GeocodingError) as excinfo:
        geocode_with(lambda request: httpx.Response(500, text="boom"))
    assert excinfo.value.address == "Dallas, TX"


def test_transport_errors_raise():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(GeocodingError):
        geocode_with(handler)


def test_missing_api_key_raises_without_request():
    geocoder = GoogleMapsGeocoder(api_key=None)
    with pytest.raises(GeocodingError, match="GOOGLE_MAPS_API_KEY"):
        asyncio.run(geocoder.geocode("Dallas, TX"))


def test_cache_over_google_geocoder_degrades_to_none_without_key():
    cache = GeocodeCache(GoogleMapsGeocoder(api_key=""))
    assert asyncio.run(cache.resolve("Dallas, TX")) is None


def test_from_config_reads_key_and_settings(tmp_path, monkeypatch):
    (tmp_path / "config.yaml").write_text("geocoding:\n  timeout_seconds: 3\n  region: ca\n")
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "abc123")

    geocoder = GoogleMapsGeocoder.from_config(ConfigManager(config_dir=tmp_path))

    assert geocoder.api_key == "abc123"
    assert geocoder.timeout_seconds == 3
    assert geocoder.region == "ca"
