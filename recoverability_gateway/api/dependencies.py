"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from recoverability_gateway.config import settings
from recoverability_gateway.domain.ports import LedgerSource, ReportCache
from recoverability_gateway.infrastructure.clients.reference_data import ServiceLineClient
from recoverability_gateway.infrastructure.database.session import get_db
from recoverability_gateway.infrastructure.ledger_sources import build_ledger_source
from recoverability_gateway.infrastructure.report_cache import DatabaseReportCache, InMemoryReportCache
from recoverability_gateway.services.report_engine import RecoverabilityEngine


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_service_line_client() -> ServiceLineClient:
    """Provide service line reference client instance"""
    return ServiceLineClient()


@lru_cache(maxsize=1)
def get_memory_cache() -> InMemoryReportCache:
    """Process-wide in-memory report cache"""
    return InMemoryReportCache()


def get_report_cache(db: Session = Depends(get_db)) -> ReportCache:
    """Report cache backend selected by configuration"""
    if settings.cache_backend == "database":
        return DatabaseReportCache(db)
    return get_memory_cache()


def get_ledger_source(db: Session = Depends(get_db)) -> LedgerSource:
    """Ledger source selected by configuration"""
    return build_ledger_source(settings.ledger_source, db)


def get_report_engine(
    ledger_source: LedgerSource = Depends(get_ledger_source),
    cache: ReportCache = Depends(get_report_cache),
    service_lines: ServiceLineClient = Depends(get_service_line_client),
) -> RecoverabilityEngine:
    """Engine wired with the configured source, cache and reference client"""
    return RecoverabilityEngine(
        ledger_source=ledger_source,
        cache=cache,
        service_lines=service_lines,
        ttl_past_seconds=settings.cache_ttl_past_seconds,
        ttl_open_seconds=settings.cache_ttl_open_seconds,
        prewarm_years=settings.prewarm_years if settings.prewarm_enabled else 0,
    )
