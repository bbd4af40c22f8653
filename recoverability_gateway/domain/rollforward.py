"""Monthly receipts rollforward - opening, billings, receipts, closing per fiscal month"""

from decimal import Decimal
from typing import Iterable, List, Sequence

from recoverability_gateway.domain.models import ZERO, FiscalMonth, MonthlyReceipt, Transaction

HUNDRED = Decimal("100")


def recovery_percent(receipts: Decimal, opening_balance: Decimal) -> Decimal:
    """Receipts as a percentage of opening balance; 0 when nothing was owed"""
    if opening_balance > 0:
        return HUNDRED * receipts / opening_balance
    return ZERO


def build_monthly_receipt(
    month: str,
    month_year: str,
    opening_balance: Decimal,
    billings: Decimal,
    receipts: Decimal,
) -> MonthlyReceipt:
    """Derive variance, recovery and closing balance from the three base figures"""
    return MonthlyReceipt(
        month=month,
        month_year=month_year,
        opening_balance=opening_balance,
        billings=billings,
        receipts=receipts,
        variance=receipts - opening_balance,
        recovery_percent=recovery_percent(receipts, opening_balance),
        closing_balance=opening_balance + billings - receipts,
    )


def compute_monthly_receipts(
    transactions: Iterable[Transaction],
    months: Sequence[FiscalMonth],
) -> List[MonthlyReceipt]:
    """
    Rollforward for one client over the given months.

    Each month's opening balance is summed afresh from every transaction dated
    before the month start; nothing is carried over from the previous month.
    Because months are contiguous and non-overlapping, month i's closing balance
    equals month i+1's opening balance.
    """
    rows = [(txn.date, txn.amount if txn.amount is not None else ZERO) for txn in transactions]
    results = []

    for month in months:
        opening = ZERO
        billings = ZERO
        receipts = ZERO
        for txn_date, amount in rows:
            if txn_date < month.start:
                opening += amount
            elif txn_date <= month.end:
                if amount > 0:
                    billings += amount
                elif amount < 0:
                    receipts += -amount

        results.append(build_monthly_receipt(month.label, month.month_year, opening, billings, receipts))

    return results


def merge_monthly_receipt(target: MonthlyReceipt, other: MonthlyReceipt) -> MonthlyReceipt:
    """Sum two rows for the same month (e.g. two service lines) and re-derive the rest"""
    return build_monthly_receipt(
        target.month,
        target.month_year,
        target.opening_balance + other.opening_balance,
        target.billings + other.billings,
        target.receipts + other.receipts,
    )
