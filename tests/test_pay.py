"""Tests for fee and pay configuration tables."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.data.models.pay import (
    DispatcherFeeConfig,
    DispatcherFeeTable,
    DriverPayConfig,
    DriverPayTable,
    PayType,
)


@pytest.mark.parametrize("pct", ["-1", "100.01", "150"])
def test_out_of_range_fee_is_rejected(pct):
    with pytest.raises(ValidationError):
        DispatcherFeeConfig(name="A", fee_percentage=Decimal(pct))


@pytest.mark.parametrize("pct", ["-5", "101"])
def test_out_of_range_pay_is_rejected(pct):
    with pytest.raises(ValidationError):
        DriverPayConfig(driver_id="d1", pay_percentage=Decimal(pct))


def test_fee_table_lookup_is_exact_with_default():
    table = DispatcherFeeTable.from_records([DispatcherFeeConfig(name="Nick", fee_percentage=10)])

    assert table.fee_for("Nick") == Decimal("10")
    assert table.fee_for("nick") == Decimal("12")
    assert "Nick" in table
    assert len(table) == 1


def test_fee_table_reports_name_collisions():
    table = DispatcherFeeTable.from_records(
        [
            DispatcherFeeConfig(name="Nick", fee_percentage=10),
            DispatcherFeeConfig(name="Logan", fee_percentage=12),
            DispatcherFeeConfig(name=" nick", fee_percentage=15),
        ]
    )

    assert table.collisions == [("Nick", " nick")]
    assert table.fee_for("Nick") == Decimal("10")


def test_duplicate_names_last_record_wins():
    table = DispatcherFeeTable.from_records(
        [
            DispatcherFeeConfig(name="Nick", fee_percentage=10),
            DispatcherFeeConfig(name="Nick", fee_percentage=20),
        ]
    )

    assert table.fee_for("Nick") == Decimal("20")
    assert table.collisions == [("Nick", "Nick")]


def test_pay_table_defaults_and_names():
    table = DriverPayTable(
        [DriverPayConfig(driver_id="d1", driver_name="Dana", pay_type=PayType.PERCENTAGE_OF_GROSS)]
    )

    assert table.terms_for("d1") == (PayType.PERCENTAGE_OF_GROSS, Decimal("50"))
    assert table.terms_for("missing") == (PayType.PERCENTAGE_OF_NET, Decimal("50"))
    assert table.terms_for(None) == (PayType.PERCENTAGE_OF_NET, Decimal("50"))
    assert table.name_for("d1") == "Dana"
    assert table.name_for("missing") is None


@pytest.mark.parametrize("fees,default", [({"A": Decimal("120")}, Decimal("12")), ({}, Decimal("-1"))])
def test_fee_table_constructor_rejects_out_of_range(fees, default):
    with pytest.raises(ValueError):
        DispatcherFeeTable(fees, default=default)


def test_pay_table_rejects_out_of_range_default():
    with pytest.raises(ValueError):
        DriverPayTable(default_pay_percentage=Decimal("101"))
