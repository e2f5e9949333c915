"""
Per-driver and per-dispatcher performance reports over calculated loads.

Driver reports merge driver ids that share a name, since the same person is
often entered more than once. Dispatcher reports group on the dispatcher
name carried by each load.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel, Field

from src.analytics.fleet import END_OF_DAY
from src.data.models.load import CalculatedLoad, DriverPayoutStatus, LoadStatus
from src.data.models.pay import DriverPayConfig

UNKNOWN_DRIVER = "Unknown Driver"

logger = structlog.get_logger(__name__)


class ReportFilters(BaseModel):
    """Inclusive drop-date window plus an optional driver or dispatcher."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    driver_id: Optional[str] = None
    dispatcher: Optional[str] = None


class StatusCounts(BaseModel):
    """Loads per factoring status."""

    factored: int = 0
    not_factored: int = 0


class PayoutCounts(BaseModel):
    """Loads per driver payout status."""

    pending: int = 0
    paid: int = 0
    partial: int = 0


class DriverReport(BaseModel):
    """Performance of one driver (all ids sharing the driver's name)."""

    driver_id: str = Field(..., description="First driver id seen for this name")
    driver_name: str
    total_loads: int
    total_pay: Decimal
    total_miles: Decimal
    avg_pay_per_mile: Decimal
    total_net_profit: Decimal
    revenue_per_load: Decimal
    profit_margin: Decimal = Field(..., description="Net profit as % of gross")
    loads_by_status: StatusCounts
    payout_status: PayoutCounts
    loads: list[CalculatedLoad]


class DispatcherReport(BaseModel):
    """Performance of one dispatcher."""

    dispatcher_name: str
    total_loads: int
    total_fees: Decimal
    avg_fee_per_load: Decimal
    total_revenue: Decimal
    revenue_per_load: Decimal
    net_profit_generated: Decimal
    loads_by_status: StatusCounts
    loads: list[CalculatedLoad]


def _in_window(loads: Iterable[CalculatedLoad], filters: ReportFilters) -> list[CalculatedLoad]:
    start = datetime.combine(filters.start_date, time.min) if filters.start_date else None
    end = datetime.combine(filters.end_date, END_OF_DAY) if filters.end_date else None
    kept = []
    for load in loads:
        dropped = datetime.combine(load.drop_date, time.min)
        if start is not None and dropped < start:
            continue
        if end is not None and dropped > end:
            continue
        kept.append(load)
    return kept


def _name_key(name: str) -> str:
    return name.strip().lower()


def _status_counts(loads: list[CalculatedLoad]) -> StatusCounts:
    return StatusCounts(
        factored=sum(1 for load in loads if load.status == LoadStatus.FACTORED),
        not_factored=sum(1 for load in loads if load.status == LoadStatus.NOT_YET_FACTORED),
    )


def _count_payouts(loads: list[CalculatedLoad], status: DriverPayoutStatus) -> int:
    return sum(1 for load in loads if load.driver_payout_status == status)


def _total(values: Iterable[Decimal]) -> Decimal:
    return sum(values, Decimal("0"))


def driver_reports(
    loads: Iterable[CalculatedLoad],
    drivers: Iterable[DriverPayConfig] = (),
    filters: Optional[ReportFilters] = None,
) -> list[DriverReport]:
    """
    Build one report per driver name, highest total pay first.

    Args:
        loads: Calculated loads
        drivers: Driver records, used to resolve names and merge ids
        filters: Date window and optional driver id; selecting a driver id
            includes every id that shares its name

    Returns:
        Reports sorted by total pay, descending. Loads with no driver are skipped.
    """
    filters = filters or ReportFilters()
    names = {d.driver_id: d.driver_name for d in drivers if d.driver_name}

    def name_of(load: CalculatedLoad) -> Optional[str]:
        return names.get(load.driver_id) or load.driver_name

    selected = _in_window(loads, filters)
    if filters.driver_id:
        selected_name = names.get(filters.driver_id)
        if selected_name:
            key = _name_key(selected_name)
            selected = [
                load for load in selected
                if load.driver_id and _name_key(name_of(load) or "") == key
            ]
        else:
            selected = [load for load in selected if load.driver_id == filters.driver_id]

    grouped: dict[str, list[CalculatedLoad]] = {}
    for load in selected:
        if not load.driver_id:
            continue
        key = _name_key(name_of(load) or UNKNOWN_DRIVER)
        grouped.setdefault(key, []).append(load)

    reports = []
    for driver_loads in grouped.values():
        first = driver_loads[0]
        total_loads = len(driver_loads)
        total_pay = _total(load.driver_pay for load in driver_loads)
        total_miles = _total(load.miles for load in driver_loads)
        total_revenue = _total(load.gross for load in driver_loads)
        total_net_profit = _total(load.net_profit for load in driver_loads)

        reports.append(
            DriverReport(
                driver_id=first.driver_id,
                driver_name=name_of(first) or UNKNOWN_DRIVER,
                total_loads=total_loads,
                total_pay=total_pay,
                total_miles=total_miles,
                avg_pay_per_mile=total_pay / total_miles if total_miles else Decimal("0"),
                total_net_profit=total_net_profit,
                revenue_per_load=total_revenue / total_loads,
                profit_margin=(
                    total_net_profit / total_revenue * 100 if total_revenue else Decimal("0")
                ),
                loads_by_status=_status_counts(driver_loads),
                payout_status=PayoutCounts(
                    pending=_count_payouts(driver_loads, DriverPayoutStatus.PENDING),
                    paid=_count_payouts(driver_loads, DriverPayoutStatus.PAID),
                    partial=_count_payouts(driver_loads, DriverPayoutStatus.PARTIAL),
                ),
                loads=driver_loads,
            )
        )

    reports.sort(key=lambda report: report.total_pay, reverse=True)
    logger.info("driver_reports_built", drivers=len(reports), loads=len(selected))
    return reports


def dispatcher_reports(
    loads: Iterable[CalculatedLoad],
    filters: Optional[ReportFilters] = None,
) -> list[DispatcherReport]:
    """Build one report per dispatcher name, highest total fees first."""
    filters = filters or ReportFilters()
    selected = _in_window(loads, filters)
    if filters.dispatcher:
        selected = [load for load in selected if load.dispatcher == filters.dispatcher]

    grouped: dict[str, list[CalculatedLoad]] = {}
    for load in selected:
        if load.dispatcher:
            grouped.setdefault(load.dispatcher, []).append(load)

    reports = []
    for name, dispatcher_loads in grouped.items():
        total_loads = len(dispatcher_loads)
        total_fees = _total(load.dispatch_fee for load in dispatcher_loads)
        total_revenue = _total(load.gross for load in dispatcher_loads)
        reports.append(
            DispatcherReport(
                dispatcher_name=name,
                total_loads=total_loads,
                total_fees=total_fees,
                avg_fee_per_load=total_fees / total_loads,
                total_revenue=total_revenue,
                revenue_per_load=total_revenue / total_loads,
                net_profit_generated=_total(load.net_profit for load in dispatcher_loads),
                loads_by_status=_status_counts(dispatcher_loads),
                loads=dispatcher_loads,
            )
        )

    reports.sort(key=lambda report: report.total_fees, reverse=True)
    logger.info("dispatcher_reports_built", dispatchers=len(reports), loads=len(selected))
    return reports
