"""Shared fixtures for the engine tests."""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from src.core.exceptions import GeocodingError
from src.data.models.load import Load
from src.data.models.pay import DispatcherFeeTable, DriverPayConfig, DriverPayTable, PayType
from src.data.models.route import Coordinates

PLACES = {
    "dallas, tx": (32.7767, -96.7970),
    "houston, tx": (29.7604, -95.3698),
    "atlanta, ga": (33.7490, -84.3880),
    "nashville, tn": (36.1627, -86.7816),
    "tulsa, ok": (36.1540, -95.9928),
}


def build_load(**overrides) -> Load:
    fields = dict(
        load_id="LOAD-001",
        broker_name="RXO",
        gross=Decimal("1000"),
        miles=Decimal("400"),
        gas_amount=Decimal("100"),
        drop_date=date(2025, 1, 15),
        dispatcher="A",
        driver_id="d1",
        origin="Dallas, TX",
        destination="Atlanta, GA",
    )
    fields.update(overrides)
    return Load(**fields)


class FakeGeocoder:
    """In-process geocoder that records every call."""

    def __init__(
        self,
        places: Optional[dict] = None,
        fail: tuple = (),
        delay: float = 0,
    ) -> None:
        self.places = dict(PLACES if places is None else places)
        self.fail = set(fail)
        self.delay = delay
        self.calls: list[str] = []

    async def geocode(self, address: str) -> Coordinates:
        self.calls.append(address)
        if self.delay:
            await asyncio.sleep(self.delay)
        if address in self.fail or address not in self.places:
            raise GeocodingError(address, "ZERO_RESULTS")
        lat, lng = self.places[address]
        return Coordinates(lat=lat, lng=lng)


@pytest.fixture
def make_load():
    return build_load


@pytest.fixture
def fee_table() -> DispatcherFeeTable:
    return DispatcherFeeTable({"A": Decimal("12"), "B": Decimal("10")})


@pytest.fixture
def pay_table() -> DriverPayTable:
    return DriverPayTable(
        [
            DriverPayConfig(
                driver_id="d1",
                driver_name="Dana",
                pay_type=PayType.PERCENTAGE_OF_NET,
                pay_percentage=Decimal("50"),
            ),
            DriverPayConfig(
                driver_id="d2",
                driver_name="Eli",
                pay_type=PayType.PERCENTAGE_OF_GROSS,
                pay_percentage=Decimal("50"),
            ),
        ]
    )


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def make_geocoder():
    return FakeGeocoder
