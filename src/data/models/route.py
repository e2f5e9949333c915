"""
Route analysis result models.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from src.data.models.load import CalculatedLoad


class Coordinates(BaseModel):
    """A resolved latitude/longitude pair."""

    lat: float
    lng: float


class DateRange(BaseModel):
    """Earliest and latest drop date in a group of loads."""

    earliest: date
    latest: date


class RouteAnalysis(BaseModel):
    """
    Statistics for one normalized origin/destination pair.

    Always rebuilt from the current filtered load set; never updated in place.
    """

    route_id: str = Field(..., description="normalize(origin)-normalize(destination)")
    origin: str
    destination: str
    origin_coords: Optional[Coordinates] = None
    destination_coords: Optional[Coordinates] = None

    total_loads: int
    total_gross: Decimal
    total_miles: Decimal
    total_net_profit: Decimal
    average_gross: Decimal
    average_miles: Decimal
    average_net_profit: Decimal
    average_rate_per_mile: Decimal

    best_load: CalculatedLoad
    worst_load: CalculatedLoad
    date_range: DateRange
    loads: list[CalculatedLoad]


class ScatterPoint(BaseModel):
    """Destination-level aggregate across every route ending there."""

    name: str
    coords: Optional[Coordinates] = None
    total_loads: int
    total_gross: Decimal
    total_net_profit: Decimal
    total_miles: Decimal
    average_gross: Decimal
    average_net_profit: Decimal
    average_rate_per_mile: Decimal
    tier: str
    color: str
    marker_size: float
    route_ids: list[str] = Field(default_factory=list)
