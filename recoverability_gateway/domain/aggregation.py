"""Invoice aggregation - group raw ledger rows into per-client ledgers and invoices"""

from datetime import date
from typing import Dict, Iterable

from recoverability_gateway.domain.models import ZERO, ClientInfo, ClientLedger, Invoice, Transaction


def aggregate_transactions(
    transactions: Iterable[Transaction],
    window_start: date,
    window_end: date,
) -> Dict[str, ClientLedger]:
    """
    Build one ClientLedger per client from a biller's transaction stream.

    Per row:
    - cumulative balance takes every amount, with or without an invoice id
    - receipts (negative amounts) dated inside [window_start, window_end] count as period receipts
    - amounts dated before window_start make up the prior period balance
    - rows carrying an invoice id are rolled into that invoice

    Malformed rows never raise: a missing amount counts as zero.
    """
    ledgers: Dict[str, ClientLedger] = {}

    for txn in transactions:
        ledger = ledgers.get(txn.client_id)
        if ledger is None:
            ledger = ClientLedger(info=_client_info(txn))
            ledgers[txn.client_id] = ledger

        amount = txn.amount if txn.amount is not None else ZERO
        ledger.transactions.append(txn)
        ledger.cumulative_balance += amount

        if window_start <= txn.date <= window_end and amount < 0:
            ledger.current_period_receipts += -amount
        if txn.date < window_start:
            ledger.prior_period_balance += amount

        if txn.invoice_id:
            _apply_to_invoice(ledger.invoices, txn.invoice_id, txn.date, amount)

    return ledgers


def _apply_to_invoice(invoices: Dict[str, Invoice], invoice_id: str, txn_date: date, amount) -> None:
    invoice = invoices.get(invoice_id)
    if invoice is None:
        invoice = Invoice(invoice_id=invoice_id)
        invoices[invoice_id] = invoice

    invoice.net_balance += amount
    if amount > 0:
        invoice.original_amount += amount
        # Payments never move the invoice date
        if invoice.invoice_date is None or txn_date < invoice.invoice_date:
            invoice.invoice_date = txn_date
    elif amount < 0:
        invoice.payments_received += -amount


def _client_info(txn: Transaction) -> ClientInfo:
    # First row seen decides the client's descriptive fields and primary service line
    return ClientInfo(
        client_id=txn.client_id,
        client_code=txn.client_code,
        client_name=txn.client_name,
        group_code=txn.group_code,
        group_desc=txn.group_desc,
        service_line_code=txn.service_line_code,
    )
