"""Unit tests for report cache backends"""

import json
from datetime import date
from decimal import Decimal
from recoverability_gateway.domain.models import (
    AgingBuckets,
    ClientReport,
    DateRange,
    MonthlyReceipt,
    ReceiptsComparison,
    Report,
)
from recoverability_gateway.infrastructure.report_cache import (
    DatabaseReportCache,
    InMemoryReportCache,
    report_from_payload,
    report_to_payload,
)


def _report(date_range=None) -> Report:
    client = ClientReport(
        client_id="C1",
        client_code="CODE-C1",
        client_name=None,
        group_code="G",
        group_desc="Group A",
        service_line_code="AUD",
        service_line_name="Audit",
        master_service_line_code="ASR",
        master_service_line_name="Assurance Services",
        sub_service_line_group_code="ASSUR",
        sub_service_line_group_desc="Assurance",
        total_balance=Decimal("1234.56"),
        aging=AgingBuckets(current=Decimal("1000"), days_120_plus=Decimal("234.56")),
        current_period_receipts=Decimal("10"),
        prior_month_balance=Decimal("1244.56"),
        invoice_count=2,
        avg_payment_days_outstanding=Decimal("45.5"),
        monthly_receipts=[
            MonthlyReceipt("Sep", "2023-09", Decimal("1"), Decimal("2"), Decimal("3"), Decimal("2"), Decimal("300"), Decimal("0"))
        ],
    )
    return Report(
        biller_code="B1",
        clients=[client],
        total_aging=AgingBuckets(current=Decimal("1000"), days_120_plus=Decimal("234.56")),
        receipts_comparison=ReceiptsComparison(Decimal("10"), Decimal("1244.56"), Decimal("-1234.56")),
        fiscal_year=None if date_range else 2024,
        date_range=date_range,
    )


def test_payload_is_json_safe_and_restores_report():
    report = _report(DateRange(start=date(2024, 1, 1), end=date(2024, 3, 31)))

    payload = json.loads(json.dumps(report_to_payload(report)))

    assert payload["clients"][0]["total_balance"] == "1234.56"
    assert report_from_payload(payload) == report


def test_memory_cache_expires_with_clock(clock):
    cache = InMemoryReportCache(clock)
    report = _report()

    cache.set("k", report, ttl_seconds=600)
    clock.advance(599)
    assert cache.get("k") is report

    clock.advance(1)
    assert cache.get("k") is None


def test_memory_cache_miss():
    assert InMemoryReportCache().get("missing") is None


def test_database_cache_round_trip(db, clock):
    cache = DatabaseReportCache(db, clock)
    report = _report()

    cache.set("recoverability:B1:fiscal:fy2024", report, ttl_seconds=1800)

    assert cache.get("recoverability:B1:fiscal:fy2024") == report
    assert cache.get("recoverability:B1:fiscal:fy2023") is None


def test_database_cache_expiry_removes_entry(db, clock):
    cache = DatabaseReportCache(db, clock)
    cache.set("k", _report(), ttl_seconds=60)

    clock.advance(61)

    assert cache.get("k") is None
    assert cache.repository.get("k") is None


def test_database_cache_overwrites_key(db, clock):
    cache = DatabaseReportCache(db, clock)
    cache.set("k", _report(), ttl_seconds=60)

    updated = _report()
    updated.biller_code = "B2"
    cache.set("k", updated, ttl_seconds=60)

    assert cache.get("k").biller_code == "B2"
