"""Debt schedule endpoints - loans, credit cards and installment plans"""

import logging

from fastapi import APIRouter, HTTPException, Request

from cashflow_gateway.api.dependencies import domain_error_to_http, get_request_id
from cashflow_gateway.api.v1.schemas import (
    AmortizationStepSchema,
    CreditPayoffRequest,
    CreditPayoffResponse,
    InstallmentScheduleRequest,
    InstallmentScheduleResponse,
    LoanScheduleRequest,
    LoanScheduleResponse,
    ScheduledInstallmentSchema,
)
from cashflow_gateway.domain.amortization import calculate_amortization_schedule, total_interest
from cashflow_gateway.domain.credit_cards import calculate_payoff_summary, format_payoff_time
from cashflow_gateway.domain.exceptions import DomainException
from cashflow_gateway.domain.installments import generate_installment_schedule

router = APIRouter()


@router.post("/loans/schedule", response_model=LoanScheduleResponse)
def create_loan_schedule(request_body: LoanScheduleRequest, request: Request):
    """Month-by-month principal/interest split of a loan"""
    request_id = get_request_id(request)

    try:
        schedule = calculate_amortization_schedule(
            request_body.principal,
            request_body.annual_rate,
            request_body.start_date,
            term_months=request_body.term_months,
            monthly_payment=request_body.monthly_payment,
            calculation_type=request_body.calculation_type,
        )
    except DomainException as e:
        raise domain_error_to_http(e, request_id)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return LoanScheduleResponse(
        payments=len(schedule),
        total_interest=total_interest(schedule),
        total_paid=sum(step.payment for step in schedule),
        schedule=[AmortizationStepSchema.from_domain(step) for step in schedule],
    )


@router.post("/credit-cards/payoff", response_model=CreditPayoffResponse)
def create_credit_payoff(request_body: CreditPayoffRequest, request: Request):
    """
    Payoff outlook for a credit card under its payment strategy.

    Plans that never reach a zero balance return null months/totals and
    payoff_time "Never (payment too low)".
    """
    request_id = get_request_id(request)

    try:
        summary = calculate_payoff_summary(
            request_body.credit.to_domain(),
            request_body.start_date,
            principal_paid_so_far=request_body.principal_paid_so_far,
            interest_paid_so_far=request_body.interest_paid_so_far,
        )
    except DomainException as e:
        raise domain_error_to_http(e, request_id)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return CreditPayoffResponse.from_domain(summary, format_payoff_time(summary.months_to_payoff))


@router.post("/installments/schedule", response_model=InstallmentScheduleResponse)
def create_installment_schedule(request_body: InstallmentScheduleRequest, request: Request):
    """Remaining payments of an installment plan"""
    request_id = get_request_id(request)

    try:
        config = request_body.installment.to_domain()
        schedule = generate_installment_schedule(config, request_body.start_date)
    except DomainException as e:
        raise domain_error_to_http(e, request_id)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return InstallmentScheduleResponse(
        remaining_installments=config.remaining_installments,
        schedule=[ScheduledInstallmentSchema.from_domain(i) for i in schedule],
    )
