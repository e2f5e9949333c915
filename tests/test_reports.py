"""Tests for driver and dispatcher performance reports."""

from datetime import date
from decimal import Decimal

import pytest

from src.analytics.economics import annotate_loads
from src.analytics.reports import ReportFilters, dispatcher_reports, driver_reports
from src.data.models.load import DriverPayoutStatus, LoadStatus
from src.data.models.pay import DriverPayConfig, DriverPayTable, PayType

DRIVERS = [
    DriverPayConfig(driver_id="d1", driver_name="Dana"),
    DriverPayConfig(driver_id="d3", driver_name=" dana "),
    DriverPayConfig(driver_id="d2", driver_name="Eli", pay_type=PayType.PERCENTAGE_OF_GROSS),
]


@pytest.fixture
def calculated(make_load, fee_table):
    loads = [
        make_load(load_id="L1", gross=Decimal("1000"), drop_date=date(2025, 1, 1), dispatcher="A",
                  driver_id="d1", status=LoadStatus.FACTORED, driver_payout_status=DriverPayoutStatus.PAID),
        make_load(load_id="L2", gross=Decimal("2500"), drop_date=date(2025, 1, 15), dispatcher="B",
                  driver_id="d2", driver_payout_status=DriverPayoutStatus.PENDING),
        make_load(load_id="L3", gross=Decimal("1800"), drop_date=date(2025, 1, 31), dispatcher="A",
                  driver_id="d3", driver_payout_status=DriverPayoutStatus.PARTIAL),
        make_load(load_id="L4", gross=Decimal("1200"), drop_date=date(2025, 2, 1), dispatcher="A",
                  driver_id=None, status=LoadStatus.FACTORED),
    ]
    return annotate_loads(loads, fee_table, DriverPayTable(DRIVERS))


def by_name(reports):
    return {report.driver_name: report for report in reports}


def test_driver_ids_sharing_a_name_are_merged(calculated):
    reports = by_name(driver_reports(calculated, DRIVERS))

    assert set(reports) == {"Dana", "Eli"}
    dana = reports["Dana"]
    assert dana.driver_id == "d1"
    assert [load.load_id for load in dana.loads] == ["L1", "L3"]
    assert dana.total_loads == 2
    assert dana.total_pay == calculated[0].driver_pay + calculated[2].driver_pay
    assert dana.total_miles == Decimal("800")
    assert dana.avg_pay_per_mile == dana.total_pay / Decimal("800")
    assert dana.revenue_per_load == Decimal("1400")


def test_driver_status_and_payout_counts(calculated):
    dana = by_name(driver_reports(calculated, DRIVERS))["Dana"]

    assert dana.loads_by_status.factored == 1
    assert dana.loads_by_status.not_factored == 1
    assert dana.payout_status.paid == 1
    assert dana.payout_status.partial == 1
    assert dana.payout_status.pending == 0


def test_driver_profit_margin(calculated):
    eli = by_name(driver_reports(calculated, DRIVERS))["Eli"]
    load = calculated[1]

    assert eli.total_net_profit == load.net_profit
    assert eli.profit_margin == load.net_profit / load.gross * 100


def test_driver_reports_sorted_by_total_pay(calculated):
    reports = driver_reports(calculated, DRIVERS)
    pays = [report.total_pay for report in reports]

    assert pays == sorted(pays, reverse=True)


def test_loads_without_driver_are_skipped(calculated):
    reports = driver_reports(calculated, DRIVERS)
    assert sum(report.total_loads for report in reports) == 3


def test_driver_filter_includes_ids_with_same_name(calculated):
    reports = driver_reports(calculated, DRIVERS, ReportFilters(driver_id="d3"))

    assert len(reports) == 1
    assert [load.load_id for load in reports[0].loads] == ["L1", "L3"]


def test_driver_filter_on_unknown_id_matches_exactly(calculated):
    assert driver_reports(calculated, DRIVERS, ReportFilters(driver_id="nobody")) == []


def test_report_date_window_is_inclusive(calculated):
    window = ReportFilters(start_date=date(2025, 1, 15), end_date=date(2025, 1, 31))
    reports = driver_reports(calculated, DRIVERS, window)

    assert sorted(load.load_id for r in reports for load in r.loads) == ["L2", "L3"]


def test_dispatcher_reports_totals_and_order(calculated):
    reports = dispatcher_reports(calculated)

    assert [report.dispatcher_name for report in reports] == ["A", "B"]
    a = reports[0]
    assert a.total_loads == 3
    assert a.total_fees == Decimal("480")
    assert a.avg_fee_per_load == Decimal("160")
    assert a.total_revenue == Decimal("4000")
    assert a.net_profit_generated == sum(
        (load.net_profit for load in calculated if load.dispatcher == "A"), Decimal("0")
    )
    assert a.loads_by_status.factored == 2
    assert a.loads_by_status.not_factored == 1
    assert reports[1].total_fees == Decimal("250")


def test_dispatcher_filter_and_window(calculated):
    reports = dispatcher_reports(
        calculated, ReportFilters(dispatcher="A", end_date=date(2025, 1, 31))
    )

    assert len(reports) == 1
    assert [load.load_id for load in reports[0].loads] == ["L1", "L3"]


def test_empty_input_gives_no_reports():
    assert driver_reports([]) == []
    assert dispatcher_reports([]) == []
