"""
Pydantic data models for the load economics engine.

Core models:
- Load: Delivered shipment record
- CalculatedLoad: Load annotated with dispatch fee, driver pay and net profit
- DispatcherFeeConfig / DriverPayConfig: Pay configuration and lookup tables
- RouteAnalysis: Per-route statistics
"""

from .load import CalculatedLoad, DriverPayoutStatus, Load, LoadStatus
from .pay import (
    DispatcherFeeConfig,
    DispatcherFeeTable,
    DriverPayConfig,
    DriverPayTable,
    PayType,
)
from .route import Coordinates, DateRange, RouteAnalysis, ScatterPoint

__all__ = [
    "Load",
    "LoadStatus",
    "DriverPayoutStatus",
    "CalculatedLoad",
    "PayType",
    "DispatcherFeeConfig",
    "DispatcherFeeTable",
    "DriverPayConfig",
    "DriverPayTable",
    "Coordinates",
    "DateRange",
    "RouteAnalysis",
    "ScatterPoint",
]
