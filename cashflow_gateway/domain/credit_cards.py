"""Credit card payoff simulation, what-if scenarios and payoff summary"""

import math
from datetime import date
from typing import Callable, List

from cashflow_gateway.config import settings
from cashflow_gateway.domain.amortization import calculate_level_payment, monthly_rate
from cashflow_gateway.domain.models import (
    CreditCardPayoffSummary,
    CreditConfig,
    MinimumPaymentMethod,
    MonthlyBreakdown,
    PaymentStrategy,
    PayoffScenario,
)
from cashflow_gateway.infrastructure.observability.logging import log_payoff_warning
from cashflow_gateway.infrastructure.observability.metrics import (
    negative_amortization_counter,
    payoff_guard_counter,
)
from cashflow_gateway.utils.date_utils import add_months, month_date

# Payment chosen for a period from (balance, interest) at the start of that period
PaymentRule = Callable[[float, float], float]

TRAP_INTEREST_MULTIPLIER = 1.1


def calculate_minimum_payment(balance: float, config: CreditConfig) -> float:
    """Minimum payment due on `balance` under the card's minimum-payment method"""
    percent_portion = balance * (config.minimum_payment_percent / 100)
    if config.minimum_payment_method == MinimumPaymentMethod.PERCENT_PLUS_INTEREST:
        return max(config.minimum_payment_floor, percent_portion + balance * config.monthly_rate)
    return max(config.minimum_payment_floor, percent_portion)


def get_effective_payment(config: CreditConfig) -> float:
    """Payment made this month under the configured strategy"""
    if config.payment_strategy == PaymentStrategy.FIXED:
        return config.fixed_payment_amount or calculate_minimum_payment(config.current_balance, config)
    if config.payment_strategy == PaymentStrategy.FULL_BALANCE:
        return config.current_balance
    return calculate_minimum_payment(config.current_balance, config)


def calculate_payment_for_months(balance: float, apr: float, months: int) -> float:
    """Monthly payment that clears `balance` in `months`, rounded up to the cent"""
    return math.ceil(calculate_level_payment(balance, apr, months) * 100) / 100


def first_due_date(start_date: date, due_day: int) -> date:
    """First due date on or after start_date"""
    candidate = month_date(start_date.year, start_date.month, due_day)
    if candidate < start_date:
        candidate = add_months(candidate, 1, day=due_day)
    return candidate


def _simulate_payoff(
    balance: float,
    apr: float,
    payment_rule: PaymentRule,
    start_date: date,
    due_day: int | None,
    max_months: int | None,
) -> List[MonthlyBreakdown]:
    """
    Run a month-by-month payoff simulation.

    Termination:
    - balance <= balance_epsilon
    - max_months periods (default max_payoff_months)
    - minimum payment trap: principal < 0.01 for more than stagnation_periods
      consecutive periods
    """
    cap = max_months if max_months is not None else settings.max_payoff_months
    epsilon = settings.balance_epsilon
    r = monthly_rate(apr)

    schedule: List[MonthlyBreakdown] = []
    cumulative_interest = 0.0
    cumulative_principal = 0.0
    stagnant_periods = 0
    negative_periods = 0
    stop_reason = None

    for month in range(1, cap + 1):
        if balance <= epsilon:
            break

        interest = balance * r
        payment = min(payment_rule(balance, interest), balance + interest)

        negative = payment < interest
        if negative:
            negative_periods += 1
        principal = max(0.0, payment - interest)
        balance = max(0.0, balance - principal)

        cumulative_interest += interest
        cumulative_principal += principal

        schedule.append(
            MonthlyBreakdown(
                month=month,
                date=add_months(start_date, month - 1, day=due_day),
                payment=payment,
                principal=principal,
                interest=interest,
                remaining_balance=balance,
                cumulative_interest=cumulative_interest,
                cumulative_principal=cumulative_principal,
                negative_amortization=negative,
            )
        )

        stagnant_periods = stagnant_periods + 1 if principal < 0.01 else 0
        if stagnant_periods > settings.stagnation_periods:
            stop_reason = "minimum_payment_trap"
            break
    else:
        if balance > epsilon:
            stop_reason = "period_cap"

    if negative_periods:
        negative_amortization_counter.inc(negative_periods)
    if stop_reason:
        payoff_guard_counter.labels(reason=stop_reason).inc()
        log_payoff_warning(
            stop_reason,
            schedule_kind="credit_card",
            periods=len(schedule),
            remaining_balance=balance,
            apr=apr,
        )

    return schedule


def calculate_credit_card_payoff(
    current_balance: float,
    apr: float,
    monthly_payment: float,
    start_date: date | None = None,
    max_months: int | None = None,
    due_day: int | None = None,
) -> List[MonthlyBreakdown]:
    """
    Payoff schedule for a constant monthly payment.

    The final payment is capped at balance + interest; a payment that does not
    cover interest leaves the balance unchanged (principal floored at 0).
    """
    return _simulate_payoff(
        current_balance,
        apr,
        lambda balance, interest: monthly_payment,
        start_date or date.today(),
        due_day,
        max_months,
    )


def calculate_declining_minimum_payoff(
    config: CreditConfig,
    start_date: date | None = None,
    max_months: int | None = None,
) -> List[MonthlyBreakdown]:
    """
    Payoff schedule paying only the minimum, recomputed from each period's balance.

    This is the only mode where the payment is a function of simulation state.
    """
    return _simulate_payoff(
        config.current_balance,
        config.apr,
        lambda balance, interest: calculate_minimum_payment(balance, config),
        start_date or date.today(),
        config.due_date,
        max_months,
    )


def calculate_payoff_schedule(
    config: CreditConfig,
    start_date: date | None = None,
    max_months: int | None = None,
) -> List[MonthlyBreakdown]:
    """Payoff schedule for the card's configured payment strategy"""
    start = start_date or date.today()

    if config.payment_strategy == PaymentStrategy.MINIMUM:
        return calculate_declining_minimum_payoff(config, start, max_months)

    if config.payment_strategy == PaymentStrategy.FULL_BALANCE:
        return _simulate_payoff(
            config.current_balance,
            config.apr,
            lambda balance, interest: balance + interest,
            start,
            config.due_date,
            max_months,
        )

    return calculate_credit_card_payoff(
        config.current_balance,
        config.apr,
        get_effective_payment(config),
        start,
        max_months,
        due_day=config.due_date,
    )


def _pays_off(schedule: List[MonthlyBreakdown]) -> bool:
    return bool(schedule) and schedule[-1].remaining_balance < settings.balance_epsilon


def _scenario(
    name: str,
    payment: float,
    schedule: List[MonthlyBreakdown],
    current_interest: float,
    current_months: int,
) -> PayoffScenario:
    scenario_interest = schedule[-1].cumulative_interest
    return PayoffScenario(
        name=name,
        monthly_payment=payment,
        months_to_payoff=len(schedule),
        total_interest=scenario_interest,
        total_amount=sum(m.payment for m in schedule),
        interest_savings=current_interest - scenario_interest,
        time_savings_months=current_months - len(schedule),
    )


def calculate_payoff_scenarios(
    config: CreditConfig,
    current_schedule: List[MonthlyBreakdown],
    start_date: date | None = None,
) -> List[PayoffScenario]:
    """
    Compare the current plan against faster fixed-payment plans.

    Scenarios:
    - Double Payment: twice the effective payment
    - Pay Off in 1 Year: payment sized for 12 months
    - Pay Off in 2 Years: payment sized for 24 months (only if below double)

    When the current plan never pays off, its interest over the simulated
    horizon is used as the baseline. Only scenarios that save interest are
    returned, sorted by ascending monthly payment.
    """
    if config.current_balance <= 0:
        return []

    start = start_date or date.today()
    current_months = len(current_schedule)
    current_interest = current_schedule[-1].cumulative_interest if current_schedule else 0.0
    scenarios: List[PayoffScenario] = []

    double_payment = get_effective_payment(config) * 2
    double_schedule = calculate_credit_card_payoff(config.current_balance, config.apr, double_payment, start)
    if _pays_off(double_schedule):
        scenarios.append(
            _scenario("Double Payment", double_payment, double_schedule, current_interest, current_months)
        )

    for months, name in ((12, "Pay Off in 1 Year"), (24, "Pay Off in 2 Years")):
        payment = calculate_payment_for_months(config.current_balance, config.apr, months)
        if payment <= 0:
            continue
        if months == 24 and payment >= double_payment:
            continue
        schedule = calculate_credit_card_payoff(config.current_balance, config.apr, payment, start)
        if schedule:
            scenarios.append(_scenario(name, payment, schedule, current_interest, current_months))

    return sorted(
        (s for s in scenarios if s.interest_savings > 0),
        key=lambda s: s.monthly_payment,
    )


def calculate_payoff_summary(
    config: CreditConfig,
    start_date: date | None = None,
    principal_paid_so_far: float = 0.0,
    interest_paid_so_far: float = 0.0,
) -> CreditCardPayoffSummary:
    """
    Summarise the payoff outlook for a card.

    A plan that never reaches a zero balance (trap detected or period cap hit)
    reports payoff_date=None and infinite months/amount/interest rather than
    a finite but meaningless date.
    """
    start = start_date or first_due_date(date.today(), config.due_date)
    effective_payment = get_effective_payment(config)
    current_monthly_interest = config.current_balance * config.monthly_rate

    schedule = calculate_payoff_schedule(config, start)
    will_pay_off = _pays_off(schedule)
    is_trap = effective_payment <= current_monthly_interest * TRAP_INTEREST_MULTIPLIER

    return CreditCardPayoffSummary(
        payoff_date=schedule[-1].date if will_pay_off else None,
        months_to_payoff=len(schedule) if will_pay_off else math.inf,
        total_amount_to_pay=sum(m.payment for m in schedule) if will_pay_off else math.inf,
        total_interest_to_pay=schedule[-1].cumulative_interest if will_pay_off else math.inf,
        current_monthly_interest=current_monthly_interest,
        effective_monthly_payment=effective_payment,
        principal_paid_so_far=principal_paid_so_far,
        interest_paid_so_far=interest_paid_so_far,
        scenarios=calculate_payoff_scenarios(config, schedule, start),
        is_minimum_payment_trap=is_trap,
        years_to_payoff=len(schedule) / 12 if will_pay_off else math.inf,
        schedule=schedule,
    )


def format_payoff_time(months: float) -> str:
    """Human-readable payoff horizon, e.g. "2 years, 3 months" """
    if not math.isfinite(months):
        return "Never (payment too low)"

    months = int(months)
    years, remaining = divmod(months, 12)
    month_part = f"{remaining} month{'s' if remaining != 1 else ''}"
    if years == 0:
        return month_part

    year_part = f"{years} year{'s' if years != 1 else ''}"
    if remaining == 0:
        return year_part
    return f"{year_part}, {month_part}"
