"""Interfaces the report engine depends on; adapters live in infrastructure"""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Protocol

from recoverability_gateway.domain.models import ClientPosition, Report, ReportPeriod, ServiceLineDetails


class LedgerSource(Protocol):
    """Origin of per-client positions: raw transactions or precomputed aggregates"""

    name: str

    def load_positions(self, biller_code: str, period: ReportPeriod) -> List[ClientPosition]:
        ...


class ReportCache(Protocol):
    def get(self, key: str) -> Optional[Report]:
        ...

    def set(self, key: str, report: Report, ttl_seconds: int) -> None:
        ...


class ServiceLineDirectory(Protocol):
    async def get_service_lines(self, codes: Iterable[str]) -> Dict[str, ServiceLineDetails]:
        ...

    async def get_master_service_lines(self) -> Dict[str, str]:
        ...


class Clock(Protocol):
    def today(self) -> date:
        ...

    def now(self) -> datetime:
        ...
