"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from recoverability_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from recoverability_gateway.api.v1 import reports
from recoverability_gateway.infrastructure.observability.logging import setup_logging
from recoverability_gateway.config import settings

setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Recoverability Gateway",
        description="Debtors aging and monthly receipts reporting per biller",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # last added = first executed
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "ledger_source": settings.ledger_source,
            "cache_backend": settings.cache_backend,
        }

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(reports.router, prefix="/v1", tags=["reports"])

    return app


app = create_app()
