"""POST /v1/projections and /v1/balances - merged cash-flow projections and daily balances"""

import time
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request

from cashflow_gateway.api.dependencies import domain_error_to_http, get_request_id
from cashflow_gateway.api.v1.schemas import (
    BalanceRequest,
    BalanceResponse,
    DayBalanceSchema,
    ProjectionRequest,
    ProjectionResponse,
    TransactionResponse,
)
from cashflow_gateway.domain.balances import calculate_daily_balances
from cashflow_gateway.domain.exceptions import DomainException
from cashflow_gateway.domain.merger import merge_with_projections
from cashflow_gateway.domain.models import Transaction
from cashflow_gateway.domain.projections import generate_projections
from cashflow_gateway.infrastructure.observability.logging import log_projection_run
from cashflow_gateway.infrastructure.observability.metrics import record_projection_run

router = APIRouter()


def build_effective_transactions(request_body: ProjectionRequest, request_id: str) -> List[Transaction]:
    """
    Run projection + merge for a request.

    Flow:
    1. Convert rules and stored transactions to domain objects
    2. Generate projections for the window
    3. Overlay stored transactions
    4. Record metrics and a structured log line
    """
    start_time = time.time()

    income_sources = [s.to_domain() for s in request_body.income_sources]
    expense_rules = [r.to_domain() for r in request_body.expense_rules]
    stored = [t.to_domain() for t in request_body.stored_transactions]

    projections = generate_projections(income_sources, expense_rules, request_body.view_start, request_body.view_end)
    merged = merge_with_projections(stored, projections)

    duration_ms = (time.time() - start_time) * 1000
    record_projection_run(projections, merged)
    log_projection_run(
        request_id,
        request_body.view_start.isoformat(),
        request_body.view_end.isoformat(),
        len(projections),
        len(stored),
        len(merged),
        duration_ms,
    )
    return merged


@router.post("/projections", response_model=ProjectionResponse)
def create_projections(request_body: ProjectionRequest, request: Request):
    """Effective transactions (stored records over projections) for the requested window"""
    request_id = get_request_id(request)

    try:
        merged = build_effective_transactions(request_body, request_id)
    except DomainException as e:
        raise domain_error_to_http(e, request_id)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return ProjectionResponse(
        view_start=request_body.view_start,
        view_end=request_body.view_end,
        transactions=[TransactionResponse.from_domain(t) for t in merged],
    )


@router.post("/balances", response_model=BalanceResponse)
def create_balances(request_body: BalanceRequest, request: Request):
    """
    Day-by-day balance forecast over the window.

    The baseline is the opening balance of view_start.
    """
    request_id = get_request_id(request)

    try:
        merged = build_effective_transactions(request_body, request_id)
        balances = calculate_daily_balances(
            request_body.baseline,
            merged,
            request_body.view_start,
            request_body.view_end,
            warning_threshold=request_body.warning_threshold,
        )
    except DomainException as e:
        raise domain_error_to_http(e, request_id)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return BalanceResponse(
        balances=[DayBalanceSchema.from_domain(day) for day in balances.values()],
        transactions=[TransactionResponse.from_domain(t) for t in merged],
    )
