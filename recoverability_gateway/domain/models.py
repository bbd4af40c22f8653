"""Domain models - pure Python dataclasses for ledger rows and report entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

ZERO = Decimal("0")

# Attribute name -> label used on the wire
BUCKET_LABELS: Dict[str, str] = {
    "current": "current",
    "days_31_60": "31-60",
    "days_61_90": "61-90",
    "days_91_120": "91-120",
    "days_120_plus": "120+",
}


@dataclass(frozen=True)
class Transaction:
    """Signed debtors ledger row (positive = billing, negative = receipt)"""

    client_id: str
    date: date
    amount: Optional[Decimal]
    invoice_id: Optional[str] = None
    biller_code: str = ""
    service_line_code: str = ""
    client_code: str = ""
    client_name: Optional[str] = None
    group_code: str = ""
    group_desc: str = ""


@dataclass
class Invoice:
    """Per-invoice rollup of every transaction sharing (client, invoice id)"""

    invoice_id: str
    invoice_date: Optional[date] = None
    original_amount: Decimal = ZERO
    payments_received: Decimal = ZERO
    net_balance: Decimal = ZERO


@dataclass
class ClientInfo:
    """Descriptive client columns carried on ledger rows"""

    client_id: str
    client_code: str = ""
    client_name: Optional[str] = None
    group_code: str = ""
    group_desc: str = ""
    service_line_code: str = ""


@dataclass
class ClientLedger:
    """All of one client's transactions plus running balances for a report run"""

    info: ClientInfo
    transactions: List[Transaction] = field(default_factory=list)
    invoices: Dict[str, Invoice] = field(default_factory=dict)
    cumulative_balance: Decimal = ZERO
    current_period_receipts: Decimal = ZERO
    prior_period_balance: Decimal = ZERO


@dataclass
class AgingBuckets:
    """Five aging buckets; values may be negative"""

    current: Decimal = ZERO
    days_31_60: Decimal = ZERO
    days_61_90: Decimal = ZERO
    days_91_120: Decimal = ZERO
    days_120_plus: Decimal = ZERO

    def add(self, bucket: str, amount: Decimal) -> None:
        setattr(self, bucket, getattr(self, bucket) + amount)

    def merge(self, other: "AgingBuckets") -> None:
        for bucket in BUCKET_LABELS:
            self.add(bucket, getattr(other, bucket))

    def total(self) -> Decimal:
        return sum((getattr(self, bucket) for bucket in BUCKET_LABELS), ZERO)

    def has_balance(self, epsilon: Decimal) -> bool:
        return any(abs(getattr(self, bucket)) > epsilon for bucket in BUCKET_LABELS)


@dataclass
class MonthlyReceipt:
    """One fiscal month of a client's balance rollforward"""

    month: str
    month_year: str  # YYYY-MM
    opening_balance: Decimal
    billings: Decimal
    receipts: Decimal
    variance: Decimal
    recovery_percent: Decimal
    closing_balance: Decimal


@dataclass
class ClientPosition:
    """Per-client result of either ledger path, ready for report assembly"""

    info: ClientInfo
    total_balance: Decimal
    aging: AgingBuckets
    current_period_receipts: Decimal
    prior_month_balance: Decimal
    invoice_count: int
    avg_payment_days_outstanding: Decimal
    monthly_receipts: List[MonthlyReceipt] = field(default_factory=list)


@dataclass(frozen=True)
class ServiceLineDetails:
    """Service line reference data"""

    code: str
    description: str = ""
    sub_group_code: str = ""
    sub_group_desc: str = ""
    master_code: str = ""


@dataclass
class ClientReport:
    """Single client row of the recoverability report"""

    client_id: str
    client_code: str
    client_name: Optional[str]
    group_code: str
    group_desc: str
    service_line_code: str
    service_line_name: str
    master_service_line_code: str
    master_service_line_name: str
    sub_service_line_group_code: str
    sub_service_line_group_desc: str
    total_balance: Decimal
    aging: AgingBuckets
    current_period_receipts: Decimal
    prior_month_balance: Decimal
    invoice_count: int
    avg_payment_days_outstanding: Decimal
    monthly_receipts: List[MonthlyReceipt] = field(default_factory=list)


@dataclass
class ReceiptsComparison:
    current_period_receipts: Decimal = ZERO
    prior_month_balance: Decimal = ZERO
    variance: Decimal = ZERO


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


@dataclass
class Report:
    """Recoverability report for one biller and period"""

    biller_code: str
    clients: List[ClientReport] = field(default_factory=list)
    total_aging: AgingBuckets = field(default_factory=AgingBuckets)
    receipts_comparison: ReceiptsComparison = field(default_factory=ReceiptsComparison)
    fiscal_year: Optional[int] = None
    fiscal_month: Optional[str] = None
    date_range: Optional[DateRange] = None


@dataclass(frozen=True)
class ReportRequest:
    """Caller-supplied report parameters"""

    biller_code: str
    mode: str = "fiscal"  # "fiscal" or "custom"
    fiscal_year: Optional[int] = None
    fiscal_month: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class FiscalMonth:
    label: str
    start: date
    end: date

    @property
    def month_year(self) -> str:
        return self.start.strftime("%Y-%m")


@dataclass(frozen=True)
class ReportPeriod:
    """Resolved report window; as_of is the aging cut-off"""

    mode: str
    window_start: date
    window_end: date
    fiscal_year: Optional[int] = None
    fiscal_month: Optional[str] = None
    months: Tuple[FiscalMonth, ...] = ()  # fiscal mode only

    @property
    def as_of(self) -> date:
        return self.window_end


@dataclass(frozen=True)
class LifeToDateAggregate:
    """Precomputed per (client, service line) life-to-date debtors row"""

    client: ClientInfo
    total_balance: Decimal
    aging: AgingBuckets
    invoice_count: int
    avg_days_outstanding: Decimal


@dataclass(frozen=True)
class MonthlyAggregate:
    """Precomputed per (client, service line, month) receipts row"""

    client_id: str
    service_line_code: str
    month_year: str  # YYYY-MM
    opening_balance: Decimal
    billings: Decimal
    receipts: Decimal
