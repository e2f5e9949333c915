"""
Analytics over trucking loads.

This module contains:
- Economics: Dispatch fee, driver pay and net profit per load
- Fleet: Filtered, sorted, paginated load table and revenue buckets
- Reports: Per-driver and per-dispatcher performance
- Routes: Per-route statistics, geocoding and destination scatter
- Access: Trial/subscription access gate
"""

from .access import AccessGate, AccessState, AccessVerdict, UserAccount
from .economics import EconomicsBreakdown, annotate_load, annotate_loads, build_tables, calculate_economics
from .fleet import (
    FleetFilters,
    FleetPipeline,
    FleetSummary,
    FleetView,
    Page,
    RevenueBucket,
    SortDirection,
    SortSpec,
    ViewerRole,
)
from .reports import DispatcherReport, DriverReport, ReportFilters, dispatcher_reports, driver_reports
from .routes import (
    ProfitabilityTier,
    RouteAnalysisEngine,
    RouteAnalysisResult,
    RouteFilters,
    RouteSortKey,
    ScatterGrouping,
)

__all__ = [
    "AccessGate",
    "AccessState",
    "AccessVerdict",
    "UserAccount",
    "EconomicsBreakdown",
    "annotate_load",
    "annotate_loads",
    "build_tables",
    "calculate_economics",
    "FleetFilters",
    "FleetPipeline",
    "FleetSummary",
    "FleetView",
    "Page",
    "RevenueBucket",
    "SortDirection",
    "SortSpec",
    "ViewerRole",
    "DispatcherReport",
    "DriverReport",
    "ReportFilters",
    "dispatcher_reports",
    "driver_reports",
    "ProfitabilityTier",
    "RouteAnalysisEngine",
    "RouteAnalysisResult",
    "RouteFilters",
    "RouteSortKey",
    "ScatterGrouping",
]
