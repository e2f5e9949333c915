"""
Load data model - represents a delivered freight shipment and its economics.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class LoadStatus(str, Enum):
    """Factoring status of a load."""

    FACTORED = "Factored"
    NOT_YET_FACTORED = "Not yet Factored"


class DriverPayoutStatus(str, Enum):
    """Whether the driver has been paid for a load."""

    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"


class Load(BaseModel):
    """
    Represents one transported shipment.

    The engine treats loads as immutable input already scoped to a tenant.
    """

    model_config = ConfigDict(frozen=True)

    # Identification
    load_id: str = Field(..., description="Unique load identifier")
    broker_name: str = Field(..., description="Broker company name (e.g. 'RXO')")
    company_id: Optional[str] = Field(None, description="Owning trucking company")

    # Financial
    gross: Decimal = Field(..., ge=0, description="Gross revenue (USD)")
    miles: Decimal = Field(..., ge=0, description="Loaded miles")
    gas_amount: Decimal = Field(Decimal("0"), ge=0, description="Fuel cost (USD)")
    gas_notes: Optional[str] = None

    # Timing
    drop_date: date = Field(..., description="Delivery date")

    # People
    dispatcher: str = Field(..., description="Dispatcher name, used as a join key")
    driver_id: Optional[str] = Field(None, description="Assigned driver")
    transporter_id: Optional[str] = Field(None, description="Carrying trucking company")

    # Locations
    origin: str = Field(..., description="Pickup location, 'City, ST'")
    destination: str = Field(..., description="Delivery location, 'City, ST'")

    # Status
    status: LoadStatus = Field(LoadStatus.NOT_YET_FACTORED)
    driver_payout_status: Optional[DriverPayoutStatus] = None


class CalculatedLoad(Load):
    """
    A load annotated with its economics.

    Derived on every request from the fee and pay tables; never persisted.
    """

    dispatch_fee: Decimal
    driver_pay: Decimal
    net_profit: Decimal
    driver_gas_share: Decimal = Decimal("0")
    company_gas_share: Decimal = Decimal("0")
    driver_name: Optional[str] = None

    @computed_field
    @property
    def rate_per_mile(self) -> Decimal:
        """Gross revenue per loaded mile."""
        if self.miles == 0:
            return Decimal("0")
        return self.gross / self.miles
