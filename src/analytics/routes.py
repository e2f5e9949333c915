"""
Route Analysis Engine - the geographic view over calculated loads.

This engine:
- Filters loads by pickup/destination text and drop-date window
- Groups loads by normalized origin/destination pair
- Computes per-route totals, averages and rate per mile
- Resolves route endpoints through the geocode cache
- Ranks routes and aggregates them per destination for the scatter chart
"""

import asyncio
from datetime import date
from decimal import Decimal
from enum import Enum
from time import time
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel

from src.analytics.fleet import Page, paginate
from src.core.config import RouteConfig
from src.data.models.load import CalculatedLoad
from src.data.models.route import Coordinates, DateRange, RouteAnalysis, ScatterPoint
from src.tools.geocode_cache import GeocodeCache, normalize_place


class RouteSortKey(str, Enum):
    """Route ranking criteria; all rank descending."""

    LOADS = "loads"
    GROSS = "gross"
    RATE = "rate"
    PROFIT = "profit"


class ProfitabilityTier(str, Enum):
    """Profitability band by average rate per mile."""

    VERY_PROFITABLE = "very_profitable"
    PROFITABLE = "profitable"
    MODERATE = "moderate"
    LOW = "low"


TIER_COLORS = {
    ProfitabilityTier.VERY_PROFITABLE: "#10b981",
    ProfitabilityTier.PROFITABLE: "#3b82f6",
    ProfitabilityTier.MODERATE: "#f59e0b",
    ProfitabilityTier.LOW: "#ef4444",
}


class ScatterGrouping(str, Enum):
    """How routes are combined into scatter points."""

    DESTINATION = "destination"
    STATE = "state"


class RouteFilters(BaseModel):
    """Route filter criteria; every field is optional."""

    pickup: str = ""
    destination: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_loads: int = 0


class RouteAnalysisResult(BaseModel):
    """Ranked routes plus the destination scatter aggregation."""

    routes: list[RouteAnalysis]
    scatter: list[ScatterPoint]
    filtered_load_count: int
    sort_key: RouteSortKey
    execution_time_seconds: float


def route_key(origin: str, destination: str) -> str:
    """Grouping key for an origin/destination pair."""
    return f"{normalize_place(origin)}-{normalize_place(destination)}"


def _location_matches(value: str, needle: str) -> bool:
    # Either string containing the other counts as a match
    value = normalize_place(value)
    return needle in value or value in needle


def filter_by_location(
    loads: Iterable[CalculatedLoad],
    filters: RouteFilters,
) -> list[CalculatedLoad]:
    """Apply pickup, destination and drop-date filters."""
    pickup = normalize_place(filters.pickup)
    destination = normalize_place(filters.destination)

    filtered = []
    for load in loads:
        if pickup and not _location_matches(load.origin, pickup):
            continue
        if destination and not _location_matches(load.destination, destination):
            continue
        if filters.start_date and load.drop_date < filters.start_date:
            continue
        if filters.end_date and load.drop_date > filters.end_date:
            continue
        filtered.append(load)
    return filtered


def group_by_route(loads: Iterable[CalculatedLoad]) -> dict[str, list[CalculatedLoad]]:
    """Group loads by route key, keeping first-seen route order."""
    groups: dict[str, list[CalculatedLoad]] = {}
    for load in loads:
        groups.setdefault(route_key(load.origin, load.destination), []).append(load)
    return groups


def build_route_analysis(route_id: str, loads: list[CalculatedLoad]) -> RouteAnalysis:
    """
    Compute statistics for one route.

    Args:
        route_id: Route key shared by every load
        loads: Non-empty list of loads on the route

    Returns:
        RouteAnalysis without coordinates
    """
    count = len(loads)
    total_gross = sum((load.gross for load in loads), Decimal("0"))
    total_miles = sum((load.miles for load in loads), Decimal("0"))
    total_net_profit = sum((load.net_profit for load in loads), Decimal("0"))
    drop_dates = [load.drop_date for load in loads]

    return RouteAnalysis(
        route_id=route_id,
        origin=loads[0].origin,
        destination=loads[0].destination,
        total_loads=count,
        total_gross=total_gross,
        total_miles=total_miles,
        total_net_profit=total_net_profit,
        average_gross=total_gross / count,
        average_miles=total_miles / count,
        average_net_profit=total_net_profit / count,
        average_rate_per_mile=total_gross / total_miles if total_miles else Decimal("0"),
        best_load=max(loads, key=lambda load: load.gross),
        worst_load=min(loads, key=lambda load: load.gross),
        date_range=DateRange(earliest=min(drop_dates), latest=max(drop_dates)),
        loads=list(loads),
    )


_SORT_FIELDS = {
    RouteSortKey.LOADS: lambda route: route.total_loads,
    RouteSortKey.GROSS: lambda route: route.average_gross,
    RouteSortKey.RATE: lambda route: route.average_rate_per_mile,
    RouteSortKey.PROFIT: lambda route: route.average_net_profit,
}


def sort_routes(
    routes: Iterable[RouteAnalysis],
    sort_key: RouteSortKey = RouteSortKey.LOADS,
) -> list[RouteAnalysis]:
    """Rank routes descending by the chosen key; ties keep their order."""
    return sorted(routes, key=_SORT_FIELDS[RouteSortKey(sort_key)], reverse=True)


def profitability_tier(
    rate_per_mile: Decimal,
    config: Optional[RouteConfig] = None,
) -> ProfitabilityTier:
    """Classify an average rate per mile."""
    config = config or RouteConfig()
    rate = Decimal(str(rate_per_mile))
    if rate > Decimal(str(config.very_profitable_rate)):
        return ProfitabilityTier.VERY_PROFITABLE
    if rate > Decimal(str(config.profitable_rate)):
        return ProfitabilityTier.PROFITABLE
    if rate > Decimal(str(config.moderate_rate)):
        return ProfitabilityTier.MODERATE
    return ProfitabilityTier.LOW


def route_color(rate_per_mile: Decimal, config: Optional[RouteConfig] = None) -> str:
    return TIER_COLORS[profitability_tier(rate_per_mile, config)]


def marker_size(load_count: int, config: Optional[RouteConfig] = None) -> float:
    """Marker size in pixels, linear in load count up to the configured ceiling."""
    config = config or RouteConfig()
    normalized = max(0.0, min(1.0, load_count / config.marker_load_ceiling))
    return config.marker_min_size + (config.marker_max_size - config.marker_min_size) * normalized


def route_stroke_weight(total_loads: int) -> int:
    """Polyline weight for a route; 2px per load, capped at 10px."""
    return min(total_loads * 2, 10)


def destination_state(destination: str) -> str:
    """
    State or province from a destination string.

    "Dallas, TX" -> "TX"; "Dallas TX" -> "TX"; "Dallas" -> "Dallas".
    """
    parts = destination.split(",")
    if len(parts) > 1:
        return parts[-1].strip()
    words = destination.split()
    if len(words) > 1:
        return words[-1]
    return destination.strip()


def build_destination_scatter(
    routes: Iterable[RouteAnalysis],
    grouping: ScatterGrouping = ScatterGrouping.DESTINATION,
    tiers: Optional[Iterable[ProfitabilityTier]] = None,
    config: Optional[RouteConfig] = None,
) -> list[ScatterPoint]:
    """
    Aggregate routes that share a destination.

    With DESTINATION grouping only routes whose destination was geocoded take
    part. The rate per mile of a point is weighted by volume:
    sum of route gross over sum of route miles.

    Args:
        routes: Analyzed routes
        grouping: Group by resolved destination or by destination state
        tiers: Optional tiers to keep; all tiers when None
        config: Tier thresholds and marker sizing

    Returns:
        Scatter points sorted by name
    """
    config = config or RouteConfig()
    groups: dict[str, list[RouteAnalysis]] = {}
    names: dict[str, str] = {}
    coords: dict[str, Optional[Coordinates]] = {}

    for route in routes:
        if grouping == ScatterGrouping.STATE:
            name = destination_state(route.destination)
            key = name.lower()
        else:
            if route.destination_coords is None:
                continue
            name = route.destination
            key = normalize_place(route.destination)
        if key not in groups:
            groups[key] = []
            names[key] = name
            coords[key] = route.destination_coords if grouping == ScatterGrouping.DESTINATION else None
        groups[key].append(route)

    allowed = {ProfitabilityTier(tier) for tier in tiers} if tiers is not None else None
    points = []
    for key, members in groups.items():
        total_loads = sum(route.total_loads for route in members)
        total_gross = sum((route.total_gross for route in members), Decimal("0"))
        total_net_profit = sum((route.total_net_profit for route in members), Decimal("0"))
        total_miles = sum((route.total_miles for route in members), Decimal("0"))
        rate = total_gross / total_miles if total_miles else Decimal("0")
        tier = profitability_tier(rate, config)
        if allowed is not None and tier not in allowed:
            continue

        points.append(
            ScatterPoint(
                name=names[key],
                coords=coords[key],
                total_loads=total_loads,
                total_gross=total_gross,
                total_net_profit=total_net_profit,
                total_miles=total_miles,
                average_gross=total_gross / total_loads,
                average_net_profit=total_net_profit / total_loads,
                average_rate_per_mile=rate,
                tier=tier.value,
                color=TIER_COLORS[tier],
                marker_size=marker_size(total_loads, config),
                route_ids=[route.route_id for route in members],
            )
        )

    return sorted(points, key=lambda point: point.name.lower())


class RouteAnalysisEngine:
    """
    Builds the ranked route list and scatter aggregation.

    Every call recomputes from the loads it is given; nothing is carried
    between calls except what the injected geocode cache holds.
    """

    def __init__(
        self,
        geocode_cache: Optional[GeocodeCache] = None,
        route_config: Optional[RouteConfig] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            geocode_cache: Cache used to resolve endpoints; routes stay without
                coordinates when None
            route_config: Tier thresholds, marker sizing and page size
            logger: Optional structured logger
        """
        self.geocode_cache = geocode_cache
        self.route_config = route_config or RouteConfig()
        self.logger = logger or structlog.get_logger(__name__)

    async def analyze(
        self,
        loads: Iterable[CalculatedLoad],
        filters: Optional[RouteFilters] = None,
        sort_key: RouteSortKey = RouteSortKey.LOADS,
        grouping: ScatterGrouping = ScatterGrouping.DESTINATION,
        tiers: Optional[Iterable[ProfitabilityTier]] = None,
    ) -> RouteAnalysisResult:
        """
        Analyze loads by route.

        Args:
            loads: Calculated loads already scoped to the tenant
            filters: Optional pickup/destination/date/min-loads filters
            sort_key: Ranking criterion (descending)
            grouping: Scatter grouping
            tiers: Optional profitability tiers to keep in the scatter

        Returns:
            RouteAnalysisResult
        """
        start_time = time()
        filters = filters or RouteFilters()

        filtered = filter_by_location(loads, filters)
        routes = [
            build_route_analysis(route_id, members)
            for route_id, members in group_by_route(filtered).items()
            if len(members) >= filters.min_loads
        ]

        routes = await self._attach_coordinates(routes)
        ranked = sort_routes(routes, sort_key)
        scatter = build_destination_scatter(ranked, grouping, tiers, self.route_config)

        result = RouteAnalysisResult(
            routes=ranked,
            scatter=scatter,
            filtered_load_count=len(filtered),
            sort_key=RouteSortKey(sort_key),
            execution_time_seconds=time() - start_time,
        )
        self.logger.info(
            "routes_analyzed",
            loads=len(filtered),
            routes=len(ranked),
            scatter_points=len(scatter),
            sort_key=result.sort_key.value,
        )
        return result

    async def _attach_coordinates(self, routes: list[RouteAnalysis]) -> list[RouteAnalysis]:
        if self.geocode_cache is None or not routes:
            return routes

        places: dict[str, str] = {}
        for route in routes:
            places.setdefault(normalize_place(route.origin), route.origin)
            places.setdefault(normalize_place(route.destination), route.destination)

        keys = list(places)
        resolved = await asyncio.gather(
            *(self.geocode_cache.resolve(places[key]) for key in keys)
        )
        coordinates = dict(zip(keys, resolved))

        located = []
        missing = 0
        for route in routes:
            origin_coords = coordinates.get(normalize_place(route.origin))
            destination_coords = coordinates.get(normalize_place(route.destination))
            if origin_coords is None or destination_coords is None:
                missing += 1
            located.append(
                route.model_copy(
                    update={
                        "origin_coords": origin_coords,
                        "destination_coords": destination_coords,
                    }
                )
            )

        if missing:
            self.logger.warning("route_coordinates_missing", routes=missing)
        return located

    def paginate_routes(self, routes: list[RouteAnalysis], page: int) -> Page:
        """One page of the ranked route list."""
        return paginate(routes, page, self.route_config.page_size)


def main() -> None:
    """Example usage of the route analysis engine."""
    from src.analytics.economics import annotate_loads, build_tables
    from src.core.config import get_config
    from src.core.logging import configure_logging
    from src.data.models.load import Load
    from src.data.models.pay import DispatcherFeeConfig, DriverPayConfig, PayType
    from src.tools.geocoding import GoogleMapsGeocoder

    config = get_config()
    configure_logging(config.env.log_level, config.env.log_json)

    fee_table, pay_table = build_tables(
        dispatchers=[DispatcherFeeConfig(name="Nick", fee_percentage=Decimal("10"))],
        drivers=[
            DriverPayConfig(
                driver_id="DRV-001",
                driver_name="John Smith",
                pay_type=PayType.PERCENTAGE_OF_GROSS,
                pay_percentage=Decimal("30"),
            )
        ],
    )

    loads = [
        Load(
            load_id="LOAD-001",
            broker_name="RXO",
            gross=Decimal("2400"),
            miles=Decimal("900"),
            gas_amount=Decimal("350"),
            drop_date=date(2025, 3, 4),
            dispatcher="Nick",
            driver_id="DRV-001",
            origin="Dallas, TX",
            destination="Atlanta, GA",
        ),
        Load(
            load_id="LOAD-002",
            broker_name="TQL",
            gross=Decimal("1900"),
            miles=Decimal("910"),
            gas_amount=Decimal("330"),
            drop_date=date(2025, 3, 11),
            dispatcher="Logan",
            origin=" dallas,  tx ",
            destination="Atlanta, GA",
        ),
        Load(
            load_id="LOAD-003",
            broker_name="Coyote",
            gross=Decimal("1500"),
            miles=Decimal("480"),
            gas_amount=Decimal("160"),
            drop_date=date(2025, 3, 15),
            dispatcher="Nick",
            driver_id="DRV-001",
            origin="Atlanta, GA",
            destination="Nashville, TN",
        ),
    ]

    geocode_cache = GeocodeCache.from_config(GoogleMapsGeocoder.from_config(config), config)
    engine = RouteAnalysisEngine(geocode_cache, config.get_route_config())
    result = asyncio.run(engine.analyze(annotate_loads(loads, fee_table, pay_table)))

    print("\n" + "=" * 80)
    print("ROUTE ANALYSIS")
    print("=" * 80)
    for route in result.routes:
        tier = profitability_tier(route.average_rate_per_mile, engine.route_config)
        print(f"{route.origin} → {route.destination}")
        print(f"  Loads: {route.total_loads}")
        print(f"  Avg Gross: ${route.average_gross:.2f}")
        print(f"  Avg Net Profit: ${route.average_net_profit:.2f}")
        print(f"  Rate/Mile: ${route.average_rate_per_mile:.2f} ({tier.value})")
        print(f"  Dates: {route.date_range.earliest} to {route.date_range.latest}")
        print(f"  Geocoded: {route.origin_coords is not None and route.destination_coords is not None}")
    print("=" * 80 + "\n")


if __name__ == "__main__":
    main()
