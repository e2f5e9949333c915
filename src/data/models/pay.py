"""
Dispatcher fee and driver pay configuration.

Dispatcher fees are keyed by dispatcher *name* because loads only carry the
name. Driver pay is keyed by driver id.
"""

from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

DEFAULT_FEE_PERCENTAGE = Decimal("12")
DEFAULT_PAY_PERCENTAGE = Decimal("50")


class PayType(str, Enum):
    """Driver pay model."""

    PERCENTAGE_OF_GROSS = "percentage_of_gross"
    PERCENTAGE_OF_NET = "percentage_of_net"


class DispatcherFeeConfig(BaseModel):
    """Fee charged by a dispatcher, as a percentage of gross."""

    name: str
    fee_percentage: Decimal = Field(DEFAULT_FEE_PERCENTAGE, ge=0, le=100)


class DriverPayConfig(BaseModel):
    """Pay terms for one driver."""

    driver_id: str
    driver_name: Optional[str] = None
    pay_type: PayType = PayType.PERCENTAGE_OF_NET
    pay_percentage: Decimal = Field(DEFAULT_PAY_PERCENTAGE, ge=0, le=100)


def _percentage(value: object, label: str) -> Decimal:
    """Coerce to Decimal and reject values outside [0, 100]."""
    pct = Decimal(str(value))
    if not Decimal("0") <= pct <= Decimal("100"):
        raise ValueError(f"{label} must be between 0 and 100, got {pct}")
    return pct


def _name_key(name: str) -> str:
    return " ".join(name.split()).casefold()


class DispatcherFeeTable:
    """
    Dispatcher name -> fee percentage, with a default for unknown names.

    Lookups are exact on the name as stored on the load. Names that differ only
    by case or whitespace are reported in ``collisions`` because they most
    likely refer to the same person and would otherwise be silently split or
    merged by the hosting application.
    """

    def __init__(
        self,
        fees: Optional[dict[str, Decimal]] = None,
        default: Decimal = DEFAULT_FEE_PERCENTAGE,
    ) -> None:
        self._fees: dict[str, Decimal] = {
            name: _percentage(pct, f"Fee for {name!r}") for name, pct in (fees or {}).items()
        }
        self.default = _percentage(default, "Default fee")
        self.collisions: list[tuple[str, ...]] = []

    @classmethod
    def from_records(
        cls,
        records: Iterable[DispatcherFeeConfig],
        default: Decimal = DEFAULT_FEE_PERCENTAGE,
    ) -> "DispatcherFeeTable":
        """
        Build the table from dispatcher records.

        When two records share a name the later one wins.
        """
        table = cls(default=default)
        seen: dict[str, list[str]] = {}
        for record in records:
            table._fees[record.name] = record.fee_percentage
            names = seen.setdefault(_name_key(record.name), [])
            names.append(record.name)

        table.collisions = [tuple(names) for names in seen.values() if len(names) > 1]
        for names in table.collisions:
            logger.warning("dispatcher_name_collision", names=list(names))
        return table

    def fee_for(self, dispatcher: str) -> Decimal:
        """Fee percentage for a dispatcher name, or the default."""
        return self._fees.get(dispatcher, self.default)

    def __contains__(self, dispatcher: object) -> bool:
        return dispatcher in self._fees

    def __len__(self) -> int:
        return len(self._fees)


class DriverPayTable:
    """Driver id -> pay terms, with a net-based default for unknown drivers."""

    def __init__(
        self,
        configs: Optional[Iterable[DriverPayConfig]] = None,
        default_pay_type: PayType = PayType.PERCENTAGE_OF_NET,
        default_pay_percentage: Decimal = DEFAULT_PAY_PERCENTAGE,
    ) -> None:
        self._configs: dict[str, DriverPayConfig] = {
            config.driver_id: config for config in (configs or [])
        }
        self.default_pay_type = PayType(default_pay_type)
        self.default_pay_percentage = _percentage(default_pay_percentage, "Default pay percentage")

    def get(self, driver_id: Optional[str]) -> Optional[DriverPayConfig]:
        """Configured terms for a driver, if any."""
        if driver_id is None:
            return None
        return self._configs.get(driver_id)

    def terms_for(self, driver_id: Optional[str]) -> tuple[PayType, Decimal]:
        """Pay type and percentage for a driver, falling back to the defaults."""
        config = self.get(driver_id)
        if config is None:
            return self.default_pay_type, self.default_pay_percentage
        return config.pay_type, config.pay_percentage

    def name_for(self, driver_id: Optional[str]) -> Optional[str]:
        config = self.get(driver_id)
        return config.driver_name if config else None

    def __len__(self) -> int:
        return len(self._configs)
