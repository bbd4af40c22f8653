"""Recoverability report engine - read-through cache around the aggregation pipeline"""

import asyncio
import logging
import time
from typing import Dict, Optional

from recoverability_gateway.domain.assembler import assemble_report, empty_report
from recoverability_gateway.domain.exceptions import LedgerSourceError, ReferenceDataError
from recoverability_gateway.domain.fiscal import fiscal_year_for, resolve_period
from recoverability_gateway.domain.models import Report, ReportPeriod, ReportRequest
from recoverability_gateway.domain.ports import Clock, LedgerSource, ReportCache, ServiceLineDirectory
from recoverability_gateway.infrastructure.observability.logging import log_report
from recoverability_gateway.infrastructure.observability.metrics import (
    cache_lookup_counter,
    ledger_fetch_failures_counter,
    prewarm_counter,
    record_report,
    reference_fetch_failures_counter,
    report_build_duration_histogram,
)
from recoverability_gateway.utils.date_utils import SystemClock

CACHE_PREFIX = "recoverability"


class RecoverabilityEngine:
    """
    Builds recoverability reports for one configured ledger source.

    The source (raw transactions or precomputed aggregates) is chosen by the
    caller and injected here; the engine itself has a single code path.
    """

    def __init__(
        self,
        ledger_source: LedgerSource,
        cache: ReportCache,
        service_lines: ServiceLineDirectory,
        clock: Optional[Clock] = None,
        ttl_past_seconds: int = 1800,
        ttl_open_seconds: int = 600,
        prewarm_years: int = 2,
    ):
        self.ledger_source = ledger_source
        self.cache = cache
        self.service_lines = service_lines
        self.clock = clock or SystemClock()
        self.ttl_past_seconds = ttl_past_seconds
        self.ttl_open_seconds = ttl_open_seconds
        self.prewarm_years = prewarm_years

    def resolve(self, request: ReportRequest) -> ReportPeriod:
        return resolve_period(request, self.clock.today())

    def current_fiscal_year(self) -> int:
        return fiscal_year_for(self.clock.today())

    def cache_key(self, biller_code: str, period: ReportPeriod) -> str:
        if period.mode == "custom":
            descriptor = f"{period.window_start.isoformat()}:{period.window_end.isoformat()}"
        elif period.fiscal_month:
            descriptor = f"fy{period.fiscal_year}:{period.fiscal_month}"
        else:
            descriptor = f"fy{period.fiscal_year}"
        return f"{CACHE_PREFIX}:{biller_code}:{period.mode}:{descriptor}"

    def ttl_for(self, period: ReportPeriod) -> int:
        """Closed fiscal years never change, so they are kept longer"""
        if period.mode == "fiscal" and period.fiscal_year < self.current_fiscal_year():
            return self.ttl_past_seconds
        return self.ttl_open_seconds

    async def build_report(self, request: ReportRequest, request_id: str | None = None) -> Report:
        """
        Serve a report from cache, or compute and cache it.

        Raises:
            InvalidReportRequestError: malformed period, before any I/O
            LedgerSourceError: ledger storage failed
            ReferenceDataError: a service line lookup failed
        """
        start_time = time.time()
        period = self.resolve(request)
        key = self.cache_key(request.biller_code, period)

        cached = await asyncio.to_thread(self.cache.get, key)
        if cached is not None:
            cache_lookup_counter.labels(result="hit").inc()
            record_report(period.mode, "cache")
            log_report(request.biller_code, key, "cache", len(cached.clients), (time.time() - start_time) * 1000, request_id)
            return cached

        cache_lookup_counter.labels(result="miss").inc()
        report = await self.compute(request.biller_code, period)
        await asyncio.to_thread(self.cache.set, key, report, self.ttl_for(period))

        record_report(period.mode, self.ledger_source.name, len(report.clients))
        log_report(
            request.biller_code,
            key,
            self.ledger_source.name,
            len(report.clients),
            (time.time() - start_time) * 1000,
            request_id,
        )
        return report

    async def compute(self, biller_code: str, period: ReportPeriod) -> Report:
        """Run the pipeline without touching the cache"""
        source = self.ledger_source.name
        with report_build_duration_histogram.labels(source=source).time():
            try:
                positions = await asyncio.to_thread(self.ledger_source.load_positions, biller_code, period)
            except LedgerSourceError:
                ledger_fetch_failures_counter.labels(source=source).inc()
                raise

            if not positions:
                return empty_report(biller_code, period)

            codes = sorted({p.info.service_line_code for p in positions if p.info.service_line_code})
            lookups = [
                asyncio.create_task(self.service_lines.get_service_lines(codes)),
                asyncio.create_task(self.service_lines.get_master_service_lines()),
            ]
            try:
                service_lines, master_names = await asyncio.gather(*lookups)
            except ReferenceDataError:
                # one failed lookup fails the report; stop the other
                for task in lookups:
                    task.cancel()
                await asyncio.gather(*lookups, return_exceptions=True)
                reference_fetch_failures_counter.inc()
                raise

            return assemble_report(biller_code, period, positions, service_lines, master_names)

    def should_prewarm(self, period: ReportPeriod) -> bool:
        return self.prewarm_years > 0 and period.mode == "fiscal" and period.fiscal_year == self.current_fiscal_year()

    async def prewarm_prior_years(self, biller_code: str, fiscal_year: int) -> Dict[int, str]:
        """
        Cache full-year reports for the fiscal years before `fiscal_year`.

        Runs after the response has been sent. Already-cached years are skipped.
        Failures are logged and counted, never raised and never retried.

        Returns:
            fiscal year -> "cached" | "skipped" | "failed"
        """
        outcomes: Dict[int, str] = {}
        for prior_year in range(fiscal_year - 1, fiscal_year - 1 - self.prewarm_years, -1):
            request = ReportRequest(biller_code=biller_code, mode="fiscal", fiscal_year=prior_year)
            try:
                period = self.resolve(request)
                key = self.cache_key(biller_code, period)
                if await asyncio.to_thread(self.cache.get, key) is not None:
                    outcomes[prior_year] = "skipped"
                else:
                    report = await self.compute(biller_code, period)
                    await asyncio.to_thread(self.cache.set, key, report, self.ttl_for(period))
                    outcomes[prior_year] = "cached"
            except Exception as e:
                outcomes[prior_year] = "failed"
                logging.error(
                    f"Pre-warm failed: {e}",
                    extra={"biller_code": biller_code, "fiscal_year": prior_year, "step": "prewarm"},
                )
            prewarm_counter.labels(outcome=outcomes[prior_year]).inc()
        return outcomes
