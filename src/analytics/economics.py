"""
Economics Calculator - dispatch fee, driver pay and net profit per load.

Both the fleet view and the route view annotate loads through this module.

Pay models:
- percentage_of_gross: driver is paid a share of gross before the dispatch
  fee; the company carries all of the fuel cost.
- percentage_of_net: driver is paid a share of gross after the dispatch fee,
  minus half of the fuel cost; the company carries the other half.
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel

from src.core.config import ConfigManager, get_config
from src.data.models.load import CalculatedLoad, Load
from src.data.models.pay import (
    DispatcherFeeConfig,
    DispatcherFeeTable,
    DriverPayConfig,
    DriverPayTable,
    PayType,
)

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")
HALF = Decimal("0.5")


class EconomicsBreakdown(BaseModel):
    """Financial facts for a single load."""

    dispatch_fee: Decimal
    driver_pay: Decimal
    net_profit: Decimal
    driver_gas_share: Decimal
    company_gas_share: Decimal
    pay_type: PayType
    fee_percentage: Decimal
    pay_percentage: Decimal


def calculate_economics(
    load: Load,
    fee_table: DispatcherFeeTable,
    pay_table: DriverPayTable,
) -> EconomicsBreakdown:
    """
    Calculate dispatch fee, driver pay and net profit for a load.

    Args:
        load: Load to price
        fee_table: Dispatcher name -> fee percentage
        pay_table: Driver id -> pay terms

    Returns:
        EconomicsBreakdown; driver pay may be negative when the driver's fuel
        share exceeds their pay.
    """
    gross = load.gross
    gas = load.gas_amount

    fee_percentage = fee_table.fee_for(load.dispatcher)
    dispatch_fee = gross * fee_percentage / HUNDRED

    pay_type, pay_percentage = pay_table.terms_for(load.driver_id)

    if pay_type == PayType.PERCENTAGE_OF_GROSS:
        driver_gas_share = Decimal("0")
        company_gas_share = gas
        driver_pay = gross * pay_percentage / HUNDRED
    else:
        driver_gas_share = gas * HALF
        company_gas_share = gas * HALF
        driver_pay = (gross - dispatch_fee) * pay_percentage / HUNDRED - driver_gas_share

    net_profit = gross - dispatch_fee - driver_pay - company_gas_share

    return EconomicsBreakdown(
        dispatch_fee=dispatch_fee,
        driver_pay=driver_pay,
        net_profit=net_profit,
        driver_gas_share=driver_gas_share,
        company_gas_share=company_gas_share,
        pay_type=pay_type,
        fee_percentage=fee_percentage,
        pay_percentage=pay_percentage,
    )


def annotate_load(
    load: Load,
    fee_table: DispatcherFeeTable,
    pay_table: DriverPayTable,
) -> CalculatedLoad:
    """Return the load with its economics attached."""
    breakdown = calculate_economics(load, fee_table, pay_table)
    return CalculatedLoad(
        **load.model_dump(include=set(Load.model_fields)),
        dispatch_fee=breakdown.dispatch_fee,
        driver_pay=breakdown.driver_pay,
        net_profit=breakdown.net_profit,
        driver_gas_share=breakdown.driver_gas_share,
        company_gas_share=breakdown.company_gas_share,
        driver_name=pay_table.name_for(load.driver_id),
    )


def annotate_loads(
    loads: Iterable[Load],
    fee_table: DispatcherFeeTable,
    pay_table: DriverPayTable,
) -> list[CalculatedLoad]:
    """Annotate every load, preserving input order."""
    calculated = [annotate_load(load, fee_table, pay_table) for load in loads]
    logger.debug("loads_annotated", count=len(calculated))
    return calculated


def build_tables(
    dispatchers: Iterable[DispatcherFeeConfig],
    drivers: Iterable[DriverPayConfig],
    config_manager: Optional[ConfigManager] = None,
) -> tuple[DispatcherFeeTable, DriverPayTable]:
    """
    Build the fee and pay lookup tables using the configured defaults.

    Args:
        dispatchers: Dispatcher fee records from configuration storage
        drivers: Driver pay records from configuration storage
        config_manager: Optional config manager (defaults to global instance)
    """
    economics = (config_manager or get_config()).get_economics_config()
    fee_table = DispatcherFeeTable.from_records(
        dispatchers, default=Decimal(str(economics.default_fee_percentage))
    )
    pay_table = DriverPayTable(
        drivers,
        default_pay_type=economics.default_pay_type,
        default_pay_percentage=Decimal(str(economics.default_pay_percentage)),
    )
    return fee_table, pay_table
