"""Pydantic schemas for API response serialization"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from typing import List, Optional


class AgingBucketsSchema(BaseModel):
    """Aging buckets keyed by their day-range labels"""

    model_config = ConfigDict(populate_by_name=True)

    current: float = 0.0
    days_31_60: float = Field(0.0, alias="31-60")
    days_61_90: float = Field(0.0, alias="61-90")
    days_91_120: float = Field(0.0, alias="91-120")
    days_120_plus: float = Field(0.0, alias="120+")


class MonthlyReceiptSchema(BaseModel):
    """One fiscal month of the receipts rollforward"""

    month: str
    month_year: str
    opening_balance: float
    billings: float
    receipts: float
    variance: float
    recovery_percent: float
    closing_balance: float


class ClientDebtorSchema(BaseModel):
    """Single client row"""

    client_id: str
    client_code: str
    client_name: Optional[str] = None
    group_code: str
    group_desc: str
    service_line_code: str
    service_line_name: str
    master_service_line_code: str
    master_service_line_name: str
    sub_service_line_group_code: str
    sub_service_line_group_desc: str
    total_balance: float
    aging: AgingBucketsSchema
    current_period_receipts: float
    prior_month_balance: float
    invoice_count: int
    avg_payment_days_outstanding: float
    monthly_receipts: List[MonthlyReceiptSchema]


class ReceiptsComparisonSchema(BaseModel):
    current_period_receipts: float
    prior_month_balance: float
    variance: float


class DateRangeSchema(BaseModel):
    start: date
    end: date


class RecoverabilityReportResponse(BaseModel):
    """Response for GET /v1/reports/recoverability"""

    clients: List[ClientDebtorSchema]
    total_aging: AgingBucketsSchema
    receipts_comparison: ReceiptsComparisonSchema
    biller_code: str
    fiscal_year: Optional[int] = None
    fiscal_month: Optional[str] = None
    date_range: Optional[DateRangeSchema] = None
