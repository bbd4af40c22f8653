"""Offset pair detection - reversals booked under a different invoice number"""

from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Mapping, Set

from recoverability_gateway.domain.models import Invoice


def detect_offset_pairs(invoices: Mapping[str, Invoice]) -> Set[str]:
    """
    Return the invoice ids excluded from aging because their balances cancel.

    Invoices are grouped by exact net balance. For every non-zero balance v whose
    negation -v is also present, every invoice under v and under -v is excluded.
    Several invoices sharing one amount are excluded together, not matched 1:1
    (e.g. +100, +100, -100 excludes all three).

    Excluded invoices still count toward the client's cumulative balance.
    """
    by_balance: Dict[Decimal, List[str]] = defaultdict(list)
    for invoice_id, invoice in invoices.items():
        by_balance[invoice.net_balance].append(invoice_id)

    excluded: Set[str] = set()
    for balance, invoice_ids in by_balance.items():
        if balance == 0:
            continue
        mirror = by_balance.get(-balance)
        if mirror:
            excluded.update(invoice_ids)
            excluded.update(mirror)

    return excluded
