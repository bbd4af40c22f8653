"""Report assembly - totals, inclusion filter, service line enrichment and ordering"""

import locale
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping

from recoverability_gateway.domain.models import (
    AgingBuckets,
    ClientPosition,
    ClientReport,
    DateRange,
    ReceiptsComparison,
    Report,
    ReportPeriod,
    ServiceLineDetails,
)

EPSILON = Decimal("0.01")


def is_reportable(position: ClientPosition, epsilon: Decimal = EPSILON) -> bool:
    """A client is shown only with a material balance or a material aging bucket"""
    return abs(position.total_balance) > epsilon or position.aging.has_balance(epsilon)


def sort_key(client: ClientReport):
    """Locale-aware (group description, client code) ordering"""
    return (
        locale.strxfrm(client.group_desc.casefold()),
        locale.strxfrm(client.client_code.casefold()),
        client.group_desc,
        client.client_code,
    )


def enrich_client(
    position: ClientPosition,
    service_lines: Mapping[str, ServiceLineDetails],
    master_names: Mapping[str, str],
) -> ClientReport:
    info = position.info
    details = service_lines.get(info.service_line_code)
    description = details.description if details else ""
    master_code = (details.master_code if details else "") or info.service_line_code

    return ClientReport(
        client_id=info.client_id,
        client_code=info.client_code,
        client_name=info.client_name,
        group_code=info.group_code,
        group_desc=info.group_desc,
        service_line_code=info.service_line_code,
        service_line_name=description,
        master_service_line_code=master_code,
        master_service_line_name=master_names.get(master_code) or description,
        sub_service_line_group_code=details.sub_group_code if details else "",
        sub_service_line_group_desc=details.sub_group_desc if details else "",
        total_balance=position.total_balance,
        aging=position.aging,
        current_period_receipts=position.current_period_receipts,
        prior_month_balance=position.prior_month_balance,
        invoice_count=position.invoice_count,
        avg_payment_days_outstanding=position.avg_payment_days_outstanding,
        monthly_receipts=list(position.monthly_receipts),
    )


def assemble_report(
    biller_code: str,
    period: ReportPeriod,
    positions: Iterable[ClientPosition],
    service_lines: Mapping[str, ServiceLineDetails],
    master_names: Mapping[str, str],
    epsilon: Decimal = EPSILON,
) -> Report:
    """
    Merge client positions into the final report.

    Totals (aging and receipts comparison) accumulate over every client before
    the inclusion filter, so hidden clients still count toward them.
    """
    total_aging = AgingBuckets()
    comparison = ReceiptsComparison()
    clients: List[ClientReport] = []

    for position in positions:
        total_aging.merge(position.aging)
        comparison.current_period_receipts += position.current_period_receipts
        comparison.prior_month_balance += position.prior_month_balance

        if is_reportable(position, epsilon):
            clients.append(enrich_client(position, service_lines, master_names))

    comparison.variance = comparison.current_period_receipts - comparison.prior_month_balance
    clients.sort(key=sort_key)

    return Report(
        biller_code=biller_code,
        clients=clients,
        total_aging=total_aging,
        receipts_comparison=comparison,
        **period_metadata(period),
    )


def period_metadata(period: ReportPeriod) -> Dict[str, object]:
    if period.mode == "custom":
        return {"date_range": DateRange(start=period.window_start, end=period.window_end)}
    return {"fiscal_year": period.fiscal_year, "fiscal_month": period.fiscal_month}


def empty_report(biller_code: str, period: ReportPeriod) -> Report:
    return Report(biller_code=biller_code, **period_metadata(period))
