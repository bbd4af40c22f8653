"""Unit tests for the monthly receipts rollforward"""

from datetime import date
from decimal import Decimal
from recoverability_gateway.domain.fiscal import fiscal_year_months
from recoverability_gateway.domain.rollforward import (
    build_monthly_receipt,
    compute_monthly_receipts,
    merge_monthly_receipt,
    recovery_percent,
)


def test_twelve_months_in_fiscal_order(make_txn):
    months = compute_monthly_receipts([make_txn(100, date(2023, 9, 2), "A")], fiscal_year_months(2024))

    assert [m.month for m in months] == ["Sep", "Oct", "Nov", "Dec", "Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug"]
    assert months[0].month_year == "2023-09"
    assert months[-1].month_year == "2024-08"


def test_closing_balance_chains_into_next_opening(make_txn):
    """Test closing(i) == opening(i+1) for every consecutive pair"""
    transactions = [
        make_txn(5000, date(2023, 1, 15), "A"),
        make_txn(-1000, date(2023, 9, 30), "A"),
        make_txn(2500, date(2023, 11, 1), "B"),
        make_txn(-700, date(2024, 1, 31)),
        make_txn(-4000, date(2024, 3, 15), "A"),
        make_txn(900, date(2024, 8, 31), "C"),
        make_txn(300, date(2024, 9, 1), "D"),  # after the fiscal year
    ]

    months = compute_monthly_receipts(transactions, fiscal_year_months(2024))

    for i in range(0, 11):
        assert months[i].closing_balance == months[i + 1].opening_balance
    assert months[0].opening_balance == Decimal("5000")
    assert months[-1].closing_balance == Decimal("2700")


def test_month_figures(make_txn):
    transactions = [
        make_txn(1000, date(2023, 8, 1), "A"),
        make_txn(400, date(2023, 9, 10), "B"),
        make_txn(-250, date(2023, 9, 20), "A"),
    ]

    sep = compute_monthly_receipts(transactions, fiscal_year_months(2024))[0]

    assert sep.opening_balance == Decimal("1000")
    assert sep.billings == Decimal("400")
    assert sep.receipts == Decimal("250")
    assert sep.variance == Decimal("-750")
    assert sep.recovery_percent == Decimal("25")
    assert sep.closing_balance == Decimal("1150")


def test_recovery_percent_zero_without_positive_opening():
    """Test no division when nothing was owed"""
    assert recovery_percent(Decimal("100"), Decimal("0")) == Decimal("0")
    assert recovery_percent(Decimal("100"), Decimal("-50")) == Decimal("0")
    assert recovery_percent(Decimal("50"), Decimal("200")) == Decimal("25")


def test_no_months_in_custom_mode(make_txn):
    assert compute_monthly_receipts([make_txn(100, date(2023, 9, 2))], ()) == []


def test_merge_sums_and_rederives():
    first = build_monthly_receipt("Oct", "2023-10", Decimal("100"), Decimal("20"), Decimal("50"))
    second = build_monthly_receipt("Oct", "2023-10", Decimal("300"), Decimal("0"), Decimal("150"))

    merged = merge_monthly_receipt(first, second)

    assert merged.opening_balance == Decimal("400")
    assert merged.receipts == Decimal("200")
    assert merged.recovery_percent == Decimal("50")
    assert merged.closing_balance == Decimal("220")
