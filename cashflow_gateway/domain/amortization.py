"""Loan amortization - principal/interest split per monthly period"""

from datetime import date
from typing import List

from cashflow_gateway.config import settings
from cashflow_gateway.domain.models import AmortizationStep, LoanCalculationType
from cashflow_gateway.infrastructure.observability.logging import log_payoff_warning
from cashflow_gateway.infrastructure.observability.metrics import negative_amortization_counter
from cashflow_gateway.utils.date_utils import add_months


def monthly_rate(annual_rate: float) -> float:
    """Annual percentage (e.g. 6.0) to monthly decimal rate (0.005)"""
    return annual_rate / 1200


def calculate_level_payment(principal: float, annual_rate: float, months: int) -> float:
    """
    Level payment that retires `principal` in `months` periods.

    PMT formula: P * r * (1+r)^n / ((1+r)^n - 1), degenerating to P / n at r = 0.
    """
    if months <= 0:
        raise ValueError("months must be positive")
    r = monthly_rate(annual_rate)
    if r == 0:
        return principal / months
    growth = (1 + r) ** months
    return principal * r * growth / (growth - 1)


def calculate_amortization_schedule(
    principal: float,
    annual_rate: float,
    start_date: date,
    term_months: int | None = None,
    monthly_payment: float | None = None,
    calculation_type: LoanCalculationType = LoanCalculationType.AMORTIZED,
    max_months: int | None = None,
) -> List[AmortizationStep]:
    """
    Compute a monthly repayment schedule for a loan.

    Requirements:
    - Interest each period = balance * annual_rate / 1200
    - Final period pays exactly the remaining balance (its payment adjusted)
    - Stops after term_months (default_loan_term_months if unspecified) or
      once the balance is <= 0.01
    - A payment below the period's interest never grows the balance:
      principal is clamped to 0 and the step is flagged negative_amortization

    Calculation types:
    - amortized: level payment (or the explicit monthly_payment)
    - reducing_balance: equal principal, interest on the remaining balance
    - flat_rate: equal principal, interest on the original principal

    Example:
        12000 at 6% over 12 months -> payment 1032.80, first interest 60.00
    """
    if principal <= 0:
        return []

    r = monthly_rate(annual_rate)
    periods = term_months or max_months or settings.default_loan_term_months
    epsilon = settings.balance_epsilon

    payment = monthly_payment or 0.0
    if calculation_type == LoanCalculationType.AMORTIZED and not payment:
        payment = calculate_level_payment(principal, annual_rate, periods)
    equal_principal = principal / periods

    schedule: List[AmortizationStep] = []
    balance = principal
    negative_periods = 0

    for i in range(periods):
        if balance <= epsilon:
            break

        if calculation_type == LoanCalculationType.FLAT_RATE:
            interest = principal * r
        else:
            interest = balance * r

        if calculation_type == LoanCalculationType.AMORTIZED:
            period_payment = payment
            period_principal = period_payment - interest
        else:
            period_principal = equal_principal
            period_payment = period_principal + interest

        # Final payment: pay off exactly what is left (an explicit payment
        # schedule is never turned into a balloon)
        is_last_period = i == periods - 1 and not monthly_payment
        if period_principal > balance or is_last_period:
            period_principal = balance
            period_payment = period_principal + interest

        negative = period_principal < 0
        if negative:
            period_principal = 0.0
            negative_periods += 1

        balance -= period_principal

        schedule.append(
            AmortizationStep(
                date=add_months(start_date, i),
                payment=period_payment,
                principal=period_principal,
                interest=interest,
                remaining_balance=max(0.0, balance),
                negative_amortization=negative,
            )
        )

    if negative_periods:
        negative_amortization_counter.inc(negative_periods)
        log_payoff_warning(
            "negative_amortization",
            schedule_kind="loan",
            periods=negative_periods,
            payment=payment,
            principal=principal,
            annual_rate=annual_rate,
        )

    return schedule


def total_interest(schedule: List[AmortizationStep]) -> float:
    return sum(step.interest for step in schedule)
