"""Aging classification - bucket open invoice balances relative to an as-of date"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import AbstractSet, Dict, Optional

from recoverability_gateway.domain.models import ZERO, AgingBuckets, ClientLedger

# (inclusive upper bound in days, bucket attribute); last bucket is open-ended
BUCKET_BOUNDS = (
    (30, "current"),
    (60, "days_31_60"),
    (90, "days_61_90"),
    (120, "days_91_120"),
)
OVERFLOW_BUCKET = "days_120_plus"


@dataclass
class AgingResult:
    """Aging for one client: buckets, per-invoice assignment and weighted days"""

    buckets: AgingBuckets = field(default_factory=AgingBuckets)
    assignments: Dict[str, str] = field(default_factory=dict)  # invoice id -> bucket
    invoice_count: int = 0
    avg_days_outstanding: Decimal = ZERO


def days_outstanding(as_of: date, invoice_date: Optional[date]) -> int:
    """Whole days between invoice date and as-of date, never negative"""
    if invoice_date is None:
        # Receipt-only invoice group: nothing was billed, treat as new
        return 0
    return max(0, (as_of - invoice_date).days)


def bucket_for_days(days: int) -> str:
    """
    Map days outstanding to a bucket attribute.

    Bounds are inclusive on the upper day: 30 -> current, 31 -> 31-60,
    120 -> 91-120, 121 -> 120+.
    """
    for upper, bucket in BUCKET_BOUNDS:
        if days <= upper:
            return bucket
    return OVERFLOW_BUCKET


def classify_invoices(ledger: ClientLedger, excluded: AbstractSet[str], as_of: date) -> AgingResult:
    """
    Age every non-excluded, non-zero invoice of a client as of `as_of`.

    Negative invoice balances are aged too, so the bucket total reconciles with
    the sum of non-excluded invoice balances (which is not the client's
    cumulative balance once unattributed rows or offset pairs exist).

    Average days outstanding is weighted by |balance| over the sum of aged
    balances, and 0 when that sum is not positive.
    """
    result = AgingResult()
    weighted_days = ZERO
    aged_balance = ZERO

    for invoice_id, invoice in ledger.invoices.items():
        if invoice_id in excluded or invoice.net_balance == 0:
            continue

        days = days_outstanding(as_of, invoice.invoice_date)
        bucket = bucket_for_days(days)

        result.buckets.add(bucket, invoice.net_balance)
        result.assignments[invoice_id] = bucket
        result.invoice_count += 1
        weighted_days += days * abs(invoice.net_balance)
        aged_balance += invoice.net_balance

    if aged_balance > 0:
        result.avg_days_outstanding = weighted_days / aged_balance

    return result
