"""SQLAlchemy ORM models for debtors ledger rows, precomputed aggregates and report cache"""

from sqlalchemy import Column, String, Integer, Numeric, Date, DateTime, Text, JSON, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(18, 2)


class DrsTransaction(Base):
    """Append-only debtors ledger row, produced upstream"""

    __tablename__ = "drs_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    gs_client_id = Column(String(64), nullable=False)
    client_code = Column(Text, nullable=False, default="")
    client_name_full = Column(Text, nullable=True)
    group_code = Column(Text, nullable=False, default="")
    group_desc = Column(Text, nullable=False, default="")
    biller = Column(String(32), nullable=False)
    serv_line_code = Column(String(32), nullable=False, default="")
    inv_number = Column(Text, nullable=True)
    tran_date = Column(Date, nullable=False)
    total = Column(MONEY, nullable=True)

    __table_args__ = (
        Index("idx_drs_biller_client_date", "biller", "gs_client_id", "tran_date"),
    )


class RecoverabilityLtdAggregate(Base):
    """Precomputed life-to-date aging per (biller, cutoff, as-of date, client, service line)"""

    __tablename__ = "recoverability_ltd_aggregate"

    id = Column(Integer, primary_key=True, autoincrement=True)
    biller_code = Column(String(32), nullable=False)
    cutoff_date = Column(Date, nullable=False)
    as_of_date = Column(Date, nullable=False)
    gs_client_id = Column(String(64), nullable=False)
    client_code = Column(Text, nullable=False, default="")
    client_name_full = Column(Text, nullable=True)
    group_code = Column(Text, nullable=False, default="")
    group_desc = Column(Text, nullable=False, default="")
    serv_line_code = Column(String(32), nullable=False, default="")
    total_balance = Column(MONEY, nullable=False, default=0)
    aging_current = Column(MONEY, nullable=False, default=0)
    aging_31_60 = Column(MONEY, nullable=False, default=0)
    aging_61_90 = Column(MONEY, nullable=False, default=0)
    aging_91_120 = Column(MONEY, nullable=False, default=0)
    aging_120_plus = Column(MONEY, nullable=False, default=0)
    invoice_count = Column(Integer, nullable=False, default=0)
    avg_days_outstanding = Column(Numeric(10, 2), nullable=False, default=0)

    __table_args__ = (
        Index("idx_ltd_biller_snapshot", "biller_code", "cutoff_date", "as_of_date"),
    )


class RecoverabilityMonthlyAggregate(Base):
    """Precomputed monthly opening balance, billings and receipts per client service line"""

    __tablename__ = "recoverability_monthly_aggregate"

    id = Column(Integer, primary_key=True, autoincrement=True)
    biller_code = Column(String(32), nullable=False)
    gs_client_id = Column(String(64), nullable=False)
    serv_line_code = Column(String(32), nullable=False, default="")
    month_start = Column(Date, nullable=False)
    opening_balance = Column(MONEY, nullable=False, default=0)
    billings = Column(MONEY, nullable=False, default=0)
    receipts = Column(MONEY, nullable=False, default=0)

    __table_args__ = (
        Index("idx_monthly_biller_month", "biller_code", "month_start"),
    )


class ReportCacheEntry(Base):
    """Serialized report with absolute expiry"""

    __tablename__ = "report_cache"

    cache_key = Column(Text, primary_key=True)
    payload = Column(JSON, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
