"""GET /v1/reports/recoverability - debtors aging and receipts report for a biller"""

import logging
from dataclasses import asdict
from datetime import date
from typing import Literal, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request

from recoverability_gateway.api.v1.schemas import RecoverabilityReportResponse
from recoverability_gateway.api.dependencies import get_report_engine, get_request_id
from recoverability_gateway.domain.exceptions import (
    InvalidReportRequestError,
    LedgerSourceError,
    ReferenceDataError,
)
from recoverability_gateway.domain.models import ReportRequest
from recoverability_gateway.services.report_engine import RecoverabilityEngine

router = APIRouter()


@router.get("/reports/recoverability", response_model=RecoverabilityReportResponse)
async def get_recoverability_report(
    request: Request,
    background_tasks: BackgroundTasks,
    biller_code: str = Query(..., min_length=1, description="Biller employee code"),
    mode: Literal["fiscal", "custom"] = Query("fiscal"),
    fiscal_year: Optional[int] = Query(None, ge=1900, le=9999, description="e.g. 2024 = Sep 2023 - Aug 2024"),
    fiscal_month: Optional[str] = Query(None, description="Sep ... Aug; aging as of that month end"),
    start_date: Optional[date] = Query(None, description="Custom mode, snapped to month start"),
    end_date: Optional[date] = Query(None, description="Custom mode, snapped to month end"),
    engine: RecoverabilityEngine = Depends(get_report_engine),
):
    """
    Build (or serve from cache) the recoverability report.

    Flow:
    1. Validate and resolve the report period
    2. Read-through cache lookup
    3. On miss: load client positions from the configured ledger source,
       enrich with service lines, assemble and cache
    4. For the current fiscal year, pre-warm the prior years after responding
    """
    request_id = get_request_id(request)
    report_request = ReportRequest(
        biller_code=biller_code,
        mode=mode,
        fiscal_year=fiscal_year,
        fiscal_month=fiscal_month,
        start_date=start_date,
        end_date=end_date,
    )

    try:
        report = await engine.build_report(report_request, request_id)

    except InvalidReportRequestError as e:
        logging.warning(f"Invalid report request: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except (LedgerSourceError, ReferenceDataError) as e:
        logging.error(f"Upstream error: {e}", extra={"request_id": request_id, "biller_code": biller_code})
        raise HTTPException(status_code=503, detail="Ledger data unavailable")

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id, "biller_code": biller_code})
        raise HTTPException(status_code=500, detail="Internal server error")

    period = engine.resolve(report_request)
    if engine.should_prewarm(period):
        background_tasks.add_task(engine.prewarm_prior_years, biller_code, period.fiscal_year)

    return RecoverabilityReportResponse.model_validate(asdict(report))
