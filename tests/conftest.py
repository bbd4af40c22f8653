"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Generator, Iterable, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from recoverability_gateway.api.main import create_app
from recoverability_gateway.api.dependencies import get_memory_cache, get_service_line_client
from recoverability_gateway.domain.exceptions import LedgerSourceError, ReferenceDataError
from recoverability_gateway.domain.models import ReportPeriod, ServiceLineDetails, Transaction
from recoverability_gateway.domain.positions import positions_from_transactions
from recoverability_gateway.infrastructure.database.models import Base
from recoverability_gateway.infrastructure.database.session import get_db
from recoverability_gateway.utils.date_utils import FixedClock


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeServiceLineDirectory:
    """In-process stand-in for the reference data API"""

    def __init__(self, service_lines=None, masters=None, fail: bool = False):
        self.service_lines = service_lines or {}
        self.masters = masters or {}
        self.fail = fail
        self.requested_codes: List[List[str]] = []

    async def get_service_lines(self, codes: Iterable[str]):
        codes = sorted(codes)
        self.requested_codes.append(codes)
        if self.fail:
            raise ReferenceDataError("reference API down")
        return {code: details for code, details in self.service_lines.items() if code in codes}

    async def get_master_service_lines(self):
        return dict(self.masters)


class StubLedgerSource:
    """Raw-path ledger source over an in-memory transaction list"""

    name = "raw"

    def __init__(self, transactions: Optional[List[Transaction]] = None, error: Optional[Exception] = None):
        self.transactions = transactions or []
        self.error = error
        self.calls: List[ReportPeriod] = []

    def load_positions(self, biller_code: str, period: ReportPeriod):
        self.calls.append(period)
        if self.error is not None:
            raise self.error
        rows = [t for t in self.transactions if t.biller_code == biller_code]
        return positions_from_transactions(rows, period)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def service_lines() -> FakeServiceLineDirectory:
    """Reference data with one audit and one tax service line"""
    return FakeServiceLineDirectory(
        service_lines={
            "AUD": ServiceLineDetails("AUD", "Audit", "ASSUR", "Assurance", "ASR"),
            "TAX": ServiceLineDetails("TAX", "Tax Compliance", "TAXG", "Tax", "TX"),
        },
        masters={"ASR": "Assurance Services", "TX": "Tax Services"},
    )


@pytest.fixture
def client(db: Session, service_lines: FakeServiceLineDirectory) -> TestClient:
    """Create FastAPI test client with test database and fake reference data"""
    app = create_app()
    get_memory_cache.cache_clear()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_service_line_client] = lambda: service_lines
    return TestClient(app)


@pytest.fixture
def clock() -> FixedClock:
    """Pinned to 15 Oct 2024, i.e. inside FY2025"""
    return FixedClock(datetime(2024, 10, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def make_txn():
    """Factory for ledger rows with sensible client defaults"""

    def _make(
        amount,
        on: date,
        invoice_id: Optional[str] = None,
        client_id: str = "C1",
        biller_code: str = "B1",
        service_line_code: str = "AUD",
        client_code: str | None = None,
        group_desc: str = "Group A",
    ) -> Transaction:
        return Transaction(
            client_id=client_id,
            date=on,
            amount=Decimal(str(amount)) if amount is not None else None,
            invoice_id=invoice_id,
            biller_code=biller_code,
            service_line_code=service_line_code,
            client_code=client_code or f"CODE-{client_id}",
            client_name=f"Client {client_id}",
            group_code=group_desc.upper().replace(" ", "_"),
            group_desc=group_desc,
        )

    return _make


@pytest.fixture
def make_source():
    """Factory for in-memory raw ledger sources"""
    return StubLedgerSource


@pytest.fixture
def make_directory():
    """Factory for fake reference data directories"""
    return FakeServiceLineDirectory


@pytest.fixture
def failing_source() -> StubLedgerSource:
    return StubLedgerSource(error=LedgerSourceError("ledger down"))
