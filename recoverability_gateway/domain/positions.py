"""Client positions - the common per-client shape produced by both ledger paths

Raw path: transactions -> ledgers -> offset pairs -> aging -> rollforward.
Aggregate path: precomputed life-to-date and monthly rows merged across service lines.
"""

from collections import defaultdict
from decimal import Decimal
from functools import reduce
from typing import Dict, Iterable, List, Optional, Sequence

from recoverability_gateway.domain.aggregation import aggregate_transactions
from recoverability_gateway.domain.aging import classify_invoices
from recoverability_gateway.domain.fiscal import calendar_months
from recoverability_gateway.domain.models import (
    ZERO,
    AgingBuckets,
    ClientInfo,
    ClientPosition,
    FiscalMonth,
    LifeToDateAggregate,
    MonthlyAggregate,
    MonthlyReceipt,
    ReportPeriod,
    Transaction,
)
from recoverability_gateway.domain.offsets import detect_offset_pairs
from recoverability_gateway.domain.rollforward import (
    build_monthly_receipt,
    compute_monthly_receipts,
    merge_monthly_receipt,
)


def positions_from_transactions(transactions: Iterable[Transaction], period: ReportPeriod) -> List[ClientPosition]:
    """Run the full aggregation pipeline over a biller's raw ledger rows"""
    in_scope = (txn for txn in transactions if txn.date <= period.window_end)
    ledgers = aggregate_transactions(in_scope, period.window_start, period.window_end)

    positions = []
    for ledger in ledgers.values():
        excluded = detect_offset_pairs(ledger.invoices)
        aging = classify_invoices(ledger, excluded, period.as_of)
        positions.append(
            ClientPosition(
                info=ledger.info,
                total_balance=ledger.cumulative_balance,
                aging=aging.buckets,
                current_period_receipts=ledger.current_period_receipts,
                prior_month_balance=ledger.prior_period_balance,
                invoice_count=aging.invoice_count,
                avg_payment_days_outstanding=aging.avg_days_outstanding,
                monthly_receipts=compute_monthly_receipts(ledger.transactions, period.months),
            )
        )
    return positions


def positions_from_aggregates(
    ltd_rows: Iterable[LifeToDateAggregate],
    monthly_rows: Iterable[MonthlyAggregate],
    period: ReportPeriod,
) -> List[ClientPosition]:
    """
    Merge precomputed rows into one position per client.

    Life-to-date rows supply balance, aging, invoice count and days outstanding.
    Monthly rows (covering the report window) supply period receipts, the
    balance before the window and, in fiscal mode, the monthly rollforward.
    The primary service line is the one carrying the largest absolute balance.

    Each service line is laid onto the calendar on its own before lines are
    summed, so a line with no row in some month still contributes its balance.
    """
    months = period.months or tuple(calendar_months(period.window_start, period.window_end))
    last_window_month = period.window_end.strftime("%Y-%m")

    monthly_by_line: Dict[str, Dict[str, Dict[str, List[MonthlyAggregate]]]] = defaultdict(
        lambda: defaultdict(lambda: defaultdict(list))
    )
    for row in monthly_rows:
        monthly_by_line[row.client_id][row.service_line_code][row.month_year].append(row)

    merged: Dict[str, ClientPosition] = {}
    primary_balance: Dict[str, Decimal] = {}
    line_balances: Dict[str, Dict[str, Decimal]] = defaultdict(lambda: defaultdict(lambda: ZERO))
    weighted_days: Dict[str, Decimal] = defaultdict(lambda: ZERO)

    for row in ltd_rows:
        client_id = row.client.client_id
        position = merged.get(client_id)
        if position is None:
            position = ClientPosition(
                info=ClientInfo(**vars(row.client)),
                total_balance=ZERO,
                aging=AgingBuckets(),
                current_period_receipts=ZERO,
                prior_month_balance=ZERO,
                invoice_count=0,
                avg_payment_days_outstanding=ZERO,
            )
            merged[client_id] = position
            primary_balance[client_id] = abs(row.total_balance)
        elif abs(row.total_balance) > primary_balance[client_id]:
            position.info.service_line_code = row.client.service_line_code
            primary_balance[client_id] = abs(row.total_balance)

        position.total_balance += row.total_balance
        position.aging.merge(row.aging)
        position.invoice_count += row.invoice_count
        weighted_days[client_id] += row.avg_days_outstanding * row.invoice_count
        line_balances[client_id][row.client.service_line_code] += row.total_balance

    for client_id, position in merged.items():
        if position.invoice_count:
            position.avg_payment_days_outstanding = weighted_days[client_id] / position.invoice_count

        rows_by_line = monthly_by_line.get(client_id, {})
        balances = line_balances[client_id]
        series = [
            _rollforward_from_rows(_summed_months(rows_by_line.get(line, {})), months, balances[line])
            for line in sorted(set(balances) | set(rows_by_line))
        ]
        client_months = [reduce(merge_monthly_receipt, same_month) for same_month in zip(*series)]

        window = [m for m in client_months if m.month_year <= last_window_month]
        position.current_period_receipts = sum((m.receipts for m in window), ZERO)
        position.prior_month_balance = window[0].opening_balance if window else position.total_balance

        if period.months:
            position.monthly_receipts = client_months

    return list(merged.values())


def _summed_months(rows_by_month: Dict[str, List[MonthlyAggregate]]) -> Dict[str, MonthlyReceipt]:
    summed = {}
    for month_year, rows in rows_by_month.items():
        for row in rows:
            receipt = build_monthly_receipt("", month_year, row.opening_balance, row.billings, row.receipts)
            summed[month_year] = merge_monthly_receipt(summed[month_year], receipt) if month_year in summed else receipt
    return summed


def _rollforward_from_rows(
    rows: Dict[str, MonthlyReceipt],
    months: Sequence[FiscalMonth],
    fallback_balance: Decimal,
) -> List[MonthlyReceipt]:
    """
    Lay one service line's rows onto the calendar.

    A month without a row had no activity: its balance is the previous month's
    closing balance, or for leading gaps the opening of the next month present,
    or the line's life-to-date balance when it has no rows at all.
    """
    present = [m.month_year for m in months if m.month_year in rows]

    result: List[MonthlyReceipt] = []
    previous_closing: Optional[Decimal] = None
    for month in months:
        row = rows.get(month.month_year)
        if row is not None:
            result.append(
                build_monthly_receipt(month.label, month.month_year, row.opening_balance, row.billings, row.receipts)
            )
        else:
            if previous_closing is not None:
                balance = previous_closing
            else:
                balance = _next_opening(rows, present, month.month_year, fallback_balance)
            result.append(build_monthly_receipt(month.label, month.month_year, balance, ZERO, ZERO))
        previous_closing = result[-1].closing_balance
    return result


def _next_opening(
    rows: Dict[str, MonthlyReceipt],
    present: Sequence[str],
    month_year: str,
    fallback_balance: Decimal,
) -> Decimal:
    for key in present:
        if key > month_year:
            return rows[key].opening_balance
    return fallback_balance
