"""Ledger source adapters - raw debtors transactions or precomputed aggregates"""

from datetime import date
from decimal import Decimal
from typing import List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recoverability_gateway.domain.exceptions import LedgerSourceError
from recoverability_gateway.domain.models import (
    ZERO,
    AgingBuckets,
    ClientInfo,
    ClientPosition,
    LifeToDateAggregate,
    MonthlyAggregate,
    ReportPeriod,
    Transaction,
)
from recoverability_gateway.domain.positions import positions_from_aggregates, positions_from_transactions
from recoverability_gateway.infrastructure.database.repositories import AggregateRepository, TransactionRepository

SOURCES = ("raw", "aggregate")


def _money(value) -> Decimal:
    return Decimal(value) if value is not None else ZERO


class RawTransactionSource:
    """Reads the biller's full transaction history and runs the aggregation pipeline"""

    name = "raw"

    def __init__(self, db: Session):
        self.repository = TransactionRepository(db)

    def fetch_transactions(self, biller_code: str, cutoff: date) -> List[Transaction]:
        """
        Fetch every ledger row for a biller from inception to cutoff.

        Raises:
            LedgerSourceError: On database failure
        """
        try:
            rows = self.repository.list_for_biller(biller_code, cutoff)
        except SQLAlchemyError as e:
            raise LedgerSourceError(f"Debtors ledger unavailable: {e}") from e

        return [
            Transaction(
                client_id=row.gs_client_id,
                date=row.tran_date,
                amount=Decimal(row.total) if row.total is not None else None,
                invoice_id=row.inv_number or None,
                biller_code=row.biller,
                service_line_code=row.serv_line_code or "",
                client_code=row.client_code or "",
                client_name=row.client_name_full,
                group_code=row.group_code or "",
                group_desc=row.group_desc or "",
            )
            for row in rows
        ]

    def load_positions(self, biller_code: str, period: ReportPeriod) -> List[ClientPosition]:
        return positions_from_transactions(self.fetch_transactions(biller_code, period.window_end), period)


class PrecomputedAggregateSource:
    """Reads upstream life-to-date and monthly aggregates instead of raw rows"""

    name = "aggregate"

    def __init__(self, db: Session):
        self.repository = AggregateRepository(db)

    def fetch_life_to_date_aggregate(self, biller_code: str, cutoff: date, as_of: date) -> List[LifeToDateAggregate]:
        """
        Fetch per (client, service line) life-to-date rows covering ledger activity
        up to `cutoff`, aged as of `as_of`.

        Snapshots are keyed by (cutoff, as-of date), so aging is always relative to
        the requested date rather than the day the aggregate was built. Period
        receipts and the prior balance are not part of these rows; they come from
        the monthly aggregate.

        Raises:
            LedgerSourceError: On database failure, or a cutoff later than as_of
        """
        if cutoff > as_of:
            raise LedgerSourceError("Aggregate cutoff must not be later than the as-of date")
        try:
            rows = self.repository.life_to_date(biller_code, cutoff, as_of)
        except SQLAlchemyError as e:
            raise LedgerSourceError(f"Recoverability aggregate unavailable: {e}") from e

        return [
            LifeToDateAggregate(
                client=ClientInfo(
                    client_id=row.gs_client_id,
                    client_code=row.client_code or "",
                    client_name=row.client_name_full,
                    group_code=row.group_code or "",
                    group_desc=row.group_desc or "",
                    service_line_code=row.serv_line_code or "",
                ),
                total_balance=_money(row.total_balance),
                aging=AgingBuckets(
                    current=_money(row.aging_current),
                    days_31_60=_money(row.aging_31_60),
                    days_61_90=_money(row.aging_61_90),
                    days_91_120=_money(row.aging_91_120),
                    days_120_plus=_money(row.aging_120_plus),
                ),
                invoice_count=row.invoice_count or 0,
                avg_days_outstanding=_money(row.avg_days_outstanding),
            )
            for row in rows
        ]

    def fetch_monthly_aggregate(self, biller_code: str, date_from: date, date_to: date) -> List[MonthlyAggregate]:
        """
        Fetch per (client, service line, month) rows for months inside the range.

        Raises:
            LedgerSourceError: On database failure
        """
        try:
            rows = self.repository.monthly(biller_code, date_from, date_to)
        except SQLAlchemyError as e:
            raise LedgerSourceError(f"Monthly recoverability aggregate unavailable: {e}") from e

        return [
            MonthlyAggregate(
                client_id=row.gs_client_id,
                service_line_code=row.serv_line_code or "",
                month_year=row.month_start.strftime("%Y-%m"),
                opening_balance=_money(row.opening_balance),
                billings=_money(row.billings),
                receipts=_money(row.receipts),
            )
            for row in rows
        ]

    def load_positions(self, biller_code: str, period: ReportPeriod) -> List[ClientPosition]:
        ltd = self.fetch_life_to_date_aggregate(biller_code, period.window_end, period.as_of)
        monthly = self.fetch_monthly_aggregate(biller_code, period.window_start, period.window_end)
        return positions_from_aggregates(ltd, monthly, period)


def build_ledger_source(kind: str, db: Session):
    """Select the ledger source named in configuration"""
    if kind == "raw":
        return RawTransactionSource(db)
    if kind == "aggregate":
        return PrecomputedAggregateSource(db)
    raise ValueError(f"Unknown ledger source '{kind}'. Must be one of: {', '.join(SOURCES)}")
