"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "recoverability-gateway"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_report(
    biller_code: str,
    cache_key: str,
    source: str,
    client_count: int,
    duration_ms: float,
    request_id: str | None = None,
) -> None:
    """Log one served report; source is the ledger path or 'cache'"""
    logging.info(
        "Recoverability report served",
        extra={
            "request_id": request_id,
            "biller_code": biller_code,
            "cache_key": cache_key,
            "step": "report_complete",
            "source": source,
            "client_count": client_count,
            "duration_ms": duration_ms,
        },
    )
