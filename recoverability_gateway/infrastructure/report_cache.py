"""Report cache backends - in-process TTL map or shared database table"""

from dataclasses import asdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from sqlalchemy.orm import Session

from recoverability_gateway.domain.models import (
    AgingBuckets,
    ClientReport,
    DateRange,
    MonthlyReceipt,
    ReceiptsComparison,
    Report,
)
from recoverability_gateway.domain.ports import Clock
from recoverability_gateway.infrastructure.database.repositories import ReportCacheRepository
from recoverability_gateway.utils.date_utils import SystemClock

_MONEY_FIELDS = {
    "total_balance",
    "current_period_receipts",
    "prior_month_balance",
    "avg_payment_days_outstanding",
}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def report_to_payload(report: Report) -> Dict[str, Any]:
    """Flatten a report into JSON-safe primitives (Decimals as strings)"""

    def convert(obj):
        if isinstance(obj, dict):
            return {k: convert(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [convert(v) for v in obj]
        return _json_default(obj)

    return convert(asdict(report))


def _aging(data: Dict[str, str]) -> AgingBuckets:
    return AgingBuckets(**{name: Decimal(value) for name, value in data.items()})


def _monthly(data: Dict[str, str]) -> MonthlyReceipt:
    return MonthlyReceipt(
        **{name: value if name in ("month", "month_year") else Decimal(value) for name, value in data.items()}
    )


def _client(data: Dict[str, Any]) -> ClientReport:
    fields = dict(data)
    fields["aging"] = _aging(fields["aging"])
    fields["monthly_receipts"] = [_monthly(m) for m in fields["monthly_receipts"]]
    for name in _MONEY_FIELDS:
        fields[name] = Decimal(fields[name])
    return ClientReport(**fields)


def report_from_payload(payload: Dict[str, Any]) -> Report:
    """Inverse of report_to_payload"""
    date_range = payload.get("date_range")
    return Report(
        biller_code=payload["biller_code"],
        clients=[_client(c) for c in payload["clients"]],
        total_aging=_aging(payload["total_aging"]),
        receipts_comparison=ReceiptsComparison(
            **{name: Decimal(value) for name, value in payload["receipts_comparison"].items()}
        ),
        fiscal_year=payload.get("fiscal_year"),
        fiscal_month=payload.get("fiscal_month"),
        date_range=(
            DateRange(start=date.fromisoformat(date_range["start"]), end=date.fromisoformat(date_range["end"]))
            if date_range
            else None
        ),
    )


class InMemoryReportCache:
    """Per-process cache; entries expire against the injected clock"""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self._entries: Dict[str, Tuple[datetime, Report]] = {}

    def get(self, key: str) -> Optional[Report]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, report = entry
        if self.clock.now() >= expires_at:
            self._entries.pop(key, None)
            return None
        return report

    def set(self, key: str, report: Report, ttl_seconds: int) -> None:
        self._entries[key] = (self.clock.now() + timedelta(seconds=ttl_seconds), report)

    def clear(self) -> None:
        self._entries.clear()


class DatabaseReportCache:
    """Cache shared between workers through the report_cache table"""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.repository = ReportCacheRepository(db)
        self.clock = clock or SystemClock()

    def get(self, key: str) -> Optional[Report]:
        entry = self.repository.get(key)
        if entry is None:
            return None
        expires_at = entry.expires_at
        if expires_at.tzinfo is None:
            # SQLite drops the offset; values are always written in UTC
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if self.clock.now() >= expires_at:
            self.repository.delete(key)
            return None
        return report_from_payload(entry.payload)

    def set(self, key: str, report: Report, ttl_seconds: int) -> None:
        expires_at = self.clock.now().astimezone(timezone.utc) + timedelta(seconds=ttl_seconds)
        self.repository.upsert(key, report_to_payload(report), expires_at)
