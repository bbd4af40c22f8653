"""Data access layer for ledger rows, aggregates and cached reports"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from recoverability_gateway.infrastructure.database.models import (
    DrsTransaction,
    RecoverabilityLtdAggregate,
    RecoverabilityMonthlyAggregate,
    ReportCacheEntry,
)


class TransactionRepository:
    """Repository for debtors ledger rows"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_biller(self, biller_code: str, cutoff: date) -> List[DrsTransaction]:
        """All rows for a biller from inception up to cutoff, ordered by (client, date)"""
        return (
            self.db.query(DrsTransaction)
            .filter(DrsTransaction.biller == biller_code)
            .filter(DrsTransaction.tran_date <= cutoff)
            .order_by(DrsTransaction.gs_client_id.asc(), DrsTransaction.tran_date.asc(), DrsTransaction.id.asc())
            .all()
        )


class AggregateRepository:
    """Repository for precomputed recoverability aggregates"""

    def __init__(self, db: Session):
        self.db = db

    def life_to_date(self, biller_code: str, cutoff: date, as_of: date) -> List[RecoverabilityLtdAggregate]:
        """Life-to-date snapshot rows built from ledger rows up to cutoff and aged as of as_of"""
        return (
            self.db.query(RecoverabilityLtdAggregate)
            .filter(RecoverabilityLtdAggregate.biller_code == biller_code)
            .filter(RecoverabilityLtdAggregate.cutoff_date == cutoff)
            .filter(RecoverabilityLtdAggregate.as_of_date == as_of)
            .order_by(RecoverabilityLtdAggregate.gs_client_id.asc(), RecoverabilityLtdAggregate.serv_line_code.asc())
            .all()
        )

    def monthly(self, biller_code: str, date_from: date, date_to: date) -> List[RecoverabilityMonthlyAggregate]:
        """Monthly rows whose month starts inside [date_from, date_to]"""
        return (
            self.db.query(RecoverabilityMonthlyAggregate)
            .filter(RecoverabilityMonthlyAggregate.biller_code == biller_code)
            .filter(RecoverabilityMonthlyAggregate.month_start >= date_from)
            .filter(RecoverabilityMonthlyAggregate.month_start <= date_to)
            .order_by(RecoverabilityMonthlyAggregate.gs_client_id.asc(), RecoverabilityMonthlyAggregate.month_start.asc())
            .all()
        )


class ReportCacheRepository:
    """Repository for serialized report cache entries"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, cache_key: str) -> Optional[ReportCacheEntry]:
        return self.db.get(ReportCacheEntry, cache_key)

    def upsert(self, cache_key: str, payload: Dict[str, Any], expires_at: datetime) -> None:
        """Insert or overwrite; concurrent writers resolve last-write-wins"""
        entry = self.db.get(ReportCacheEntry, cache_key)
        if entry is None:
            entry = ReportCacheEntry(cache_key=cache_key, payload=payload, expires_at=expires_at)
            self.db.add(entry)
        else:
            entry.payload = payload
            entry.expires_at = expires_at
        self.db.commit()

    def delete(self, cache_key: str) -> None:
        entry = self.db.get(ReportCacheEntry, cache_key)
        if entry is not None:
            self.db.delete(entry)
            self.db.commit()
