"""Unit tests for report assembly"""

from datetime import date
from decimal import Decimal
from recoverability_gateway.domain.assembler import assemble_report, empty_report, enrich_client, is_reportable
from recoverability_gateway.domain.models import (
    AgingBuckets,
    ClientInfo,
    ClientPosition,
    ReportPeriod,
    ServiceLineDetails,
)

FISCAL = ReportPeriod(mode="fiscal", window_start=date(2023, 9, 1), window_end=date(2024, 8, 31), fiscal_year=2024)
CUSTOM = ReportPeriod(mode="custom", window_start=date(2024, 1, 1), window_end=date(2024, 3, 31))
SERVICE_LINES = {"AUD": ServiceLineDetails("AUD", "Audit", "ASSUR", "Assurance", "ASR")}
MASTERS = {"ASR": "Assurance Services"}


def _position(client_id, balance, current=None, receipts=0, prior=0, group_desc="Group A", client_code=None,
              service_line_code="AUD"):
    info = ClientInfo(
        client_id=client_id,
        client_code=client_code or f"CODE-{client_id}",
        client_name=f"Client {client_id}",
        group_code="G",
        group_desc=group_desc,
        service_line_code=service_line_code,
    )
    balance = Decimal(str(balance))
    aging = AgingBuckets(current=Decimal(str(current)) if current is not None else balance)
    return ClientPosition(
        info=info,
        total_balance=balance,
        aging=aging,
        current_period_receipts=Decimal(str(receipts)),
        prior_month_balance=Decimal(str(prior)),
        invoice_count=1,
        avg_payment_days_outstanding=Decimal("0"),
    )


def test_inclusion_threshold():
    """Test balances within a cent of zero are hidden"""
    assert not is_reportable(_position("C1", "0.005"))
    assert is_reportable(_position("C1", "0.02"))
    assert is_reportable(_position("C1", "-0.02"))
    # zero balance but a material bucket (e.g. offsetting buckets) still shows
    assert is_reportable(_position("C1", 0, current="500"))


def test_totals_include_hidden_clients():
    positions = [
        _position("C1", 1000, receipts=200, prior=800),
        _position("C2", "0.005", receipts=300, prior="0.005"),
    ]

    report = assemble_report("B1", FISCAL, positions, SERVICE_LINES, MASTERS)

    assert [c.client_id for c in report.clients] == ["C1"]
    assert report.total_aging.current == Decimal("1000.005")
    assert report.receipts_comparison.current_period_receipts == Decimal("500")
    assert report.receipts_comparison.prior_month_balance == Decimal("800.005")
    assert report.receipts_comparison.variance == Decimal("-300.005")


def test_total_aging_is_sum_of_client_buckets():
    positions = [_position("C1", 100), _position("C2", 250), _position("C3", -40)]

    report = assemble_report("B1", FISCAL, positions, SERVICE_LINES, MASTERS)

    assert report.total_aging.current == sum(c.aging.current for c in report.clients)


def test_clients_sorted_by_group_then_code():
    positions = [
        _position("C1", 10, group_desc="beta", client_code="A1"),
        _position("C2", 10, group_desc="Alpha", client_code="Z9"),
        _position("C3", 10, group_desc="alpha", client_code="B2"),
    ]

    report = assemble_report("B1", FISCAL, positions, SERVICE_LINES, MASTERS)

    assert [c.client_code for c in report.clients] == ["B2", "Z9", "A1"]


def test_enrichment_with_master_name():
    client = enrich_client(_position("C1", 10), SERVICE_LINES, MASTERS)

    assert client.service_line_name == "Audit"
    assert client.master_service_line_code == "ASR"
    assert client.master_service_line_name == "Assurance Services"
    assert client.sub_service_line_group_code == "ASSUR"
    assert client.sub_service_line_group_desc == "Assurance"


def test_enrichment_fallbacks():
    """Test unknown master falls back to description and unknown line to its own code"""
    no_master = enrich_client(_position("C1", 10), SERVICE_LINES, {})
    unknown = enrich_client(_position("C2", 10, service_line_code="XYZ"), SERVICE_LINES, MASTERS)

    assert no_master.master_service_line_name == "Audit"
    assert unknown.service_line_name == ""
    assert unknown.master_service_line_code == "XYZ"
    assert unknown.master_service_line_name == ""


def test_period_metadata():
    fiscal = assemble_report("B1", FISCAL, [], {}, {})
    custom = empty_report("B1", CUSTOM)

    assert fiscal.fiscal_year == 2024 and fiscal.date_range is None
    assert custom.fiscal_year is None
    assert custom.date_range.start == date(2024, 1, 1)
    assert custom.date_range.end == date(2024, 3, 31)
    assert custom.clients == []
    assert custom.total_aging.total() == Decimal("0")
