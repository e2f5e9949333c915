"""
Fleet Aggregation Pipeline - the time/entity view over calculated loads.

Steps, each usable on its own:
- annotate (economics)
- default sort, newest drop date first
- filter by search text, driver and drop-date window
- sort by any CalculatedLoad field
- paginate
- group the filtered set into revenue buckets for charts
"""

import math
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Iterable, Optional, Sequence, TypeVar

import structlog
from pydantic import BaseModel

from src.analytics.economics import annotate_loads
from src.data.models.load import CalculatedLoad, Load
from src.data.models.pay import DispatcherFeeTable, DriverPayTable

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
END_OF_DAY = time(23, 59, 59, 999000)

# Fields that sort descending unless a direction is given
DESCENDING_BY_DEFAULT = {"drop_date", "gross", "dispatch_fee", "driver_pay", "miles"}


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class ViewerRole(str, Enum):
    """Role of the user viewing the fleet table."""

    OWNER = "owner"
    DISPATCHER = "dispatcher"
    DRIVER = "driver"


class FleetFilters(BaseModel):
    """Filter criteria; every field is optional."""

    query: str = ""
    driver_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SortSpec(BaseModel):
    """Sort key and direction; direction defaults per field."""

    key: str = "drop_date"
    direction: Optional[SortDirection] = None

    @property
    def resolved_direction(self) -> SortDirection:
        if self.direction is not None:
            return self.direction
        return default_direction(self.key)


class Page(BaseModel, Generic[T]):
    """One page of a larger result list."""

    items: list[T]
    page: int
    page_size: int
    page_count: int
    total_items: int


class RevenueBucket(BaseModel):
    """Gross revenue and load count for one driver or dispatcher."""

    name: str
    gross: Decimal = Decimal("0")
    load_count: int = 0


class FleetSummary(BaseModel):
    """Headline totals for a set of loads."""

    total_loads: int
    total_gross: Decimal
    total_miles: Decimal
    average_rate_per_mile: Decimal
    total_driver_pay: Decimal
    total_dispatch_fee: Decimal
    total_net_profit: Decimal


class FleetView(BaseModel):
    """Everything the fleet table and its charts need."""

    page: Page
    buckets: list[RevenueBucket]
    summary: FleetSummary
    filters: FleetFilters
    sort: SortSpec


def default_direction(key: str) -> SortDirection:
    """Descending for dates and money/mileage totals, ascending otherwise."""
    return SortDirection.DESC if key in DESCENDING_BY_DEFAULT else SortDirection.ASC


def default_sort(loads: Iterable[CalculatedLoad]) -> list[CalculatedLoad]:
    """Newest drop date first; ties keep their input order."""
    return sorted(loads, key=lambda load: load.drop_date, reverse=True)


def _matches_query(load: Load, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    return (
        needle in load.broker_name.lower()
        or needle in load.origin.lower()
        or needle in load.destination.lower()
    )


def filter_loads(loads: Iterable[CalculatedLoad], filters: FleetFilters) -> list[CalculatedLoad]:
    """
    Apply search, driver and date-window filters.

    The date window is inclusive: the start bound is midnight and the end
    bound is 23:59:59.999 of the given days.
    """
    start = datetime.combine(filters.start_date, time.min) if filters.start_date else None
    end = datetime.combine(filters.end_date, END_OF_DAY) if filters.end_date else None

    filtered = []
    for load in loads:
        if not _matches_query(load, filters.query):
            continue
        if filters.driver_id and load.driver_id != filters.driver_id:
            continue
        dropped = datetime.combine(load.drop_date, time.min)
        if start is not None and dropped < start:
            continue
        if end is not None and dropped > end:
            continue
        filtered.append(load)
    return filtered


def _sort_value(load: CalculatedLoad, key: str) -> Any:
    value = getattr(load, key, None)
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, (Decimal, int, float, date)):
        return value
    if value is None:
        return ""
    return str(value).lower()


def sort_loads(loads: Iterable[CalculatedLoad], sort: SortSpec) -> list[CalculatedLoad]:
    """
    Stable sort by any CalculatedLoad field.

    Strings compare case-insensitively. Unknown keys compare as empty
    strings, which leaves the order unchanged.
    """
    return sorted(
        loads,
        key=lambda load: _sort_value(load, sort.key),
        reverse=sort.resolved_direction == SortDirection.DESC,
    )


def paginate(items: Sequence[T], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """
    Slice one page out of ``items``.

    Pages are 1-based; out-of-range page numbers are clamped to the first or
    last page.
    """
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total = len(items)
    page_count = math.ceil(total / page_size)
    page = max(1, min(page, max(page_count, 1)))
    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        page_count=page_count,
        total_items=total,
    )


def group_revenue(
    loads: Iterable[CalculatedLoad],
    viewer_role: ViewerRole = ViewerRole.OWNER,
) -> list[RevenueBucket]:
    """
    Bucket gross revenue by driver (for dispatchers) or by dispatcher name.

    Buckets are returned in first-seen order.
    """
    buckets: dict[str, RevenueBucket] = {}
    by_driver = ViewerRole(viewer_role) == ViewerRole.DISPATCHER

    for load in loads:
        if by_driver:
            key = load.driver_id or ""
            name = load.driver_name or load.driver_id or "Unassigned"
        else:
            key = load.dispatcher
            name = load.dispatcher

        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = RevenueBucket(name=name)
        bucket.gross += load.gross
        bucket.load_count += 1

    return list(buckets.values())


def summarize(loads: Iterable[CalculatedLoad]) -> FleetSummary:
    """Totals and average rate per mile (0 when there are no miles)."""
    loads = list(loads)
    total_gross = sum((load.gross for load in loads), Decimal("0"))
    total_miles = sum((load.miles for load in loads), Decimal("0"))
    return FleetSummary(
        total_loads=len(loads),
        total_gross=total_gross,
        total_miles=total_miles,
        average_rate_per_mile=total_gross / total_miles if total_miles else Decimal("0"),
        total_driver_pay=sum((load.driver_pay for load in loads), Decimal("0")),
        total_dispatch_fee=sum((load.dispatch_fee for load in loads), Decimal("0")),
        total_net_profit=sum((load.net_profit for load in loads), Decimal("0")),
    )


class FleetPipeline:
    """
    Stateful fleet table over a fixed load set.

    Holds the current filters, sort and page the way a dashboard does.
    Changing any filter or the sort sends the viewer back to page 1.
    """

    def __init__(
        self,
        loads: Iterable[Load],
        fee_table: DispatcherFeeTable,
        pay_table: DriverPayTable,
        viewer_role: ViewerRole = ViewerRole.OWNER,
        page_size: int = DEFAULT_PAGE_SIZE,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self.loads = list(loads)
        self.fee_table = fee_table
        self.pay_table = pay_table
        self.viewer_role = ViewerRole(viewer_role)
        self.page_size = page_size
        self.logger = logger or structlog.get_logger(__name__)

        self.filters = FleetFilters()
        self.sort: Optional[SortSpec] = None
        self.page = 1

    def set_filters(self, **changes: Any) -> None:
        """Update filter fields (query, driver_id, start_date, end_date)."""
        updated = FleetFilters.model_validate({**self.filters.model_dump(), **changes})
        if updated != self.filters:
            self.filters = updated
            self.page = 1

    def set_sort(self, key: str, direction: Optional[SortDirection] = None) -> None:
        """Sort by a field, using that field's default direction if none given."""
        sort = SortSpec(key=key, direction=direction or default_direction(key))
        if sort != self.sort:
            self.sort = sort
            self.page = 1

    def toggle_sort(self, key: str) -> None:
        """Flip direction when re-selecting the current key; otherwise use the default."""
        if self.sort is not None and self.sort.key == key:
            flipped = (
                SortDirection.ASC
                if self.sort.resolved_direction == SortDirection.DESC
                else SortDirection.DESC
            )
            self.set_sort(key, flipped)
        else:
            self.set_sort(key)

    def set_page(self, page: int) -> None:
        self.page = page

    def calculated_loads(self) -> list[CalculatedLoad]:
        """All loads annotated and in default order."""
        return default_sort(annotate_loads(self.loads, self.fee_table, self.pay_table))

    def filtered_loads(self) -> list[CalculatedLoad]:
        """Loads after filtering and sorting, before pagination."""
        filtered = filter_loads(self.calculated_loads(), self.filters)
        if self.sort is not None:
            filtered = sort_loads(filtered, self.sort)
        return filtered

    def run(self) -> FleetView:
        """Build the current page, chart buckets and summary."""
        filtered = self.filtered_loads()
        page = paginate(filtered, self.page, self.page_size)
        self.page = page.page

        view = FleetView(
            page=page,
            buckets=group_revenue(filtered, self.viewer_role),
            summary=summarize(filtered),
            filters=self.filters,
            sort=self.sort or SortSpec(),
        )
        self.logger.info(
            "fleet_view_built",
            total_loads=len(self.loads),
            filtered_loads=len(filtered),
            page=page.page,
            page_count=page.page_count,
        )
        return view
