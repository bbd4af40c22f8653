"""Database session management with connection pooling"""

from typing import Any, Dict
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from recoverability_gateway.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool settings per backend; ledger reads run in worker threads"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
