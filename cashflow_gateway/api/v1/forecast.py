"""POST /v1/forecast/summary - runway, next cash crunch and bill coverage"""

import logging
from datetime import date

from fastapi import APIRouter, HTTPException, Request

from cashflow_gateway.api.dependencies import domain_error_to_http, get_request_id
from cashflow_gateway.api.v1.projections import build_effective_transactions
from cashflow_gateway.api.v1.schemas import (
    BillCoverageSchema,
    CashCrunchSchema,
    ForecastRequest,
    ForecastResponse,
    RunwaySchema,
)
from cashflow_gateway.domain.analytics import get_bill_coverage_report, get_next_crunch, get_runway
from cashflow_gateway.domain.exceptions import DomainException

router = APIRouter()


@router.post("/forecast/summary", response_model=ForecastResponse)
def create_forecast_summary(request_body: ForecastRequest, request: Request):
    """
    Forecast headline figures from the current balance.

    Horizons are bounded by the request window: transactions outside
    [view_start, view_end] are never generated.
    """
    request_id = get_request_id(request)
    today = request_body.today or date.today()

    try:
        merged = build_effective_transactions(request_body, request_id)
        runway = get_runway(request_body.balance, merged, today)
        crunch = get_next_crunch(request_body.balance, merged, today)
        coverage = get_bill_coverage_report(request_body.balance, merged, today)
    except DomainException as e:
        raise domain_error_to_http(e, request_id)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return ForecastResponse(
        runway=RunwaySchema.from_domain(runway),
        next_crunch=CashCrunchSchema.from_domain(crunch) if crunch else None,
        bill_coverage=BillCoverageSchema.from_domain(coverage),
    )
