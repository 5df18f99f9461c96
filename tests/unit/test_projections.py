"""Unit tests for projected transaction construction and projection generation"""

import pytest
from dataclasses import replace
from datetime import date

from cashflow_gateway.domain.models import (
    FixedExpense,
    Frequency,
    LoanConfig,
    OccurrenceOverride,
    PaymentBreakdown,
    ScheduleConfig,
    SourceType,
    TransactionStatus,
    TransactionType,
    WeekendAdjustment,
)
from cashflow_gateway.domain.projections import (
    generate_credit_projections,
    generate_installment_projections,
    generate_loan_projections,
    generate_projections,
)
from cashflow_gateway.domain.transactions import create_projected_transaction

YEAR_START = date(2025, 1, 1)
YEAR_END = date(2025, 12, 31)


def test_projected_transaction_defaults(rent):
    t = create_projected_transaction(
        rent, date(2025, 1, 31), TransactionType.EXPENSE, SourceType.EXPENSE_RULE, occurrence_id="rent_2025-02"
    )

    assert t.id == "proj_rent::2025-01-31::rent_2025-02"
    assert t.projected_amount == 1500.0
    assert t.status == TransactionStatus.PROJECTED
    assert t.is_projection
    assert t.handle.occurrence_id == "rent_2025-02"


def test_amount_precedence(rent):
    """Test override amount beats breakdown total which beats the rule amount"""
    breakdown = PaymentBreakdown(
        principal_paid=900, interest_paid=100, remaining_balance=0, payment_number=1, total_payments=1
    )
    with_breakdown = create_projected_transaction(
        rent, date(2025, 1, 1), TransactionType.EXPENSE, SourceType.EXPENSE_RULE, payment_breakdown=breakdown
    )
    with_override = create_projected_transaction(
        rent,
        date(2025, 1, 1),
        TransactionType.EXPENSE,
        SourceType.EXPENSE_RULE,
        payment_breakdown=breakdown,
        override=OccurrenceOverride(amount=1234.0),
    )

    assert with_breakdown.projected_amount == 1000
    assert with_override.projected_amount == 1234.0


def test_override_moves_date_and_replaces_notes(rent):
    t = create_projected_transaction(
        rent,
        date(2025, 1, 1),
        TransactionType.EXPENSE,
        SourceType.EXPENSE_RULE,
        occurrence_id="rent_2025-01",
        override=OccurrenceOverride(scheduled_date=date(2025, 1, 3), notes="paid late"),
    )

    assert t.scheduled_date == date(2025, 1, 3)
    assert t.notes == "paid late"
    assert t.id == "proj_rent::2025-01-03::rent_2025-01"


def test_skipped_override_suppresses(rent):
    t = create_projected_transaction(
        rent, date(2025, 1, 1), TransactionType.EXPENSE, SourceType.EXPENSE_RULE,
        override=OccurrenceOverride(skipped=True),
    )
    assert t is None


def test_rent_projections_keyed_by_logical_month(rent):
    projections = generate_projections([], [rent], YEAR_START, date(2025, 3, 31))

    assert [t.scheduled_date for t in projections] == [date(2025, 1, 1), date(2025, 1, 31), date(2025, 2, 28)]
    assert [t.occurrence_id for t in projections] == ["rent_2025-01", "rent_2025-02", "rent_2025-03"]


def test_occurrence_ids_stable_across_weekend_policy(rent):
    """Test changing the weekend policy moves dates but never occurrence ids"""
    ids = {}
    for policy in WeekendAdjustment:
        rule = replace(rent, weekend_adjustment=policy)
        ids[policy] = [t.occurrence_id for t in generate_projections([], [rule], date(2025, 1, 5), YEAR_END)]

    assert ids[WeekendAdjustment.BEFORE] == ids[WeekendAdjustment.AFTER] == ids[WeekendAdjustment.NONE]


def test_overrides_applied_by_occurrence_id(rent):
    rule = replace(
        rent,
        occurrence_overrides={
            "rent_2025-02": OccurrenceOverride(amount=1600.0),
            "rent_2025-03": OccurrenceOverride(skipped=True),
        },
    )
    projections = generate_projections([], [rule], YEAR_START, date(2025, 3, 31))

    assert [(t.occurrence_id, t.projected_amount) for t in projections] == [
        ("rent_2025-01", 1500.0),
        ("rent_2025-02", 1600.0),
    ]


def test_income_projections(salary):
    projections = generate_projections([salary], [], YEAR_START, date(2025, 1, 31))

    assert len(projections) == 3
    assert all(t.type == TransactionType.INCOME for t in projections)
    assert all(t.source_type == SourceType.INCOME_SOURCE for t in projections)
    assert [t.occurrence_id for t in projections] == ["salary_BW1", "salary_BW2", "salary_BW3"]


def test_projections_sorted_by_date(salary, rent, laptop_plan):
    projections = generate_projections([salary], [rent, laptop_plan], YEAR_START, date(2025, 6, 30))
    dates = [t.scheduled_date for t in projections]
    assert dates == sorted(dates)


def test_inactive_rules_are_skipped(rent, salary):
    assert generate_projections([replace(salary, is_active=False)], [replace(rent, is_active=False)], YEAR_START, YEAR_END) == []


def test_loan_projections(car_loan):
    projections = generate_loan_projections(car_loan, YEAR_START, YEAR_END)

    assert len(projections) == 12
    assert projections[0].scheduled_date == date(2025, 1, 15)
    assert projections[0].projected_amount == pytest.approx(1032.80, abs=0.01)
    assert projections[0].payment_breakdown.interest_paid == pytest.approx(60.0)
    assert [t.payment_breakdown.payment_number for t in projections] == list(range(1, 13))
    assert projections[-1].payment_breakdown.remaining_balance == pytest.approx(0, abs=0.01)
    assert projections[0].occurrence_id == "car_2025-01"


def test_loan_projections_resume_after_payments_made(car_loan):
    loan = LoanConfig(principal_amount=12000, current_balance=9000, interest_rate=6.0, term_months=12, payments_made=3)
    projections = generate_loan_projections(replace(car_loan, loan=loan), YEAR_START, YEAR_END)

    assert len(projections) == 9
    assert projections[0].scheduled_date == date(2025, 4, 15)
    assert projections[0].payment_breakdown.payment_number == 4
    assert projections[0].payment_breakdown.total_payments == 12


def test_loan_projections_weekend_adjusted(car_loan):
    """Test a Saturday due date moves to Friday but keeps its monthly id"""
    rule = replace(car_loan, weekend_adjustment=WeekendAdjustment.BEFORE)
    projections = generate_loan_projections(rule, date(2025, 3, 1), date(2025, 3, 31))

    # 2025-03-15 is a Saturday
    assert [t.scheduled_date for t in projections] == [date(2025, 3, 14)]
    assert projections[0].occurrence_id == "car_2025-03"


def test_credit_projections_minimum_strategy(credit_card):
    projections = generate_credit_projections(credit_card, YEAR_START, YEAR_END)

    assert len(projections) == 12
    assert projections[0].scheduled_date == date(2025, 1, 10)
    assert projections[0].projected_amount == pytest.approx(25.0)
    assert projections[0].payment_breakdown.interest_paid == pytest.approx(20.0)
    assert projections[0].payment_breakdown.remaining_balance == pytest.approx(995.0)
    assert projections[0].payment_breakdown.total_payments == 0


def test_credit_projections_for_paid_off_card(credit_card):
    rule = replace(credit_card, credit=replace(credit_card.credit, current_balance=0))
    assert generate_credit_projections(rule, YEAR_START, YEAR_END) == []


def test_installment_projections(laptop_plan):
    projections = generate_installment_projections(laptop_plan, YEAR_START, YEAR_END)

    assert [t.scheduled_date for t in projections] == [date(2025, 2, 20), date(2025, 3, 20), date(2025, 4, 20)]
    assert all(t.projected_amount == 100 for t in projections)
    assert [t.payment_breakdown.payment_number for t in projections] == [2, 3, 4]
    assert [t.occurrence_id for t in projections] == ["laptop_2025-02", "laptop_2025-03", "laptop_2025-04"]


def test_semi_monthly_days_clamping_to_same_date():
    """Test days 30 and 31 produce a single February payment with a unique id"""
    rule = FixedExpense(
        id="pay",
        name="Payroll tax",
        category="tax",
        amount=50.0,
        frequency=Frequency.SEMI_MONTHLY,
        start_date=date(2025, 1, 1),
        schedule=ScheduleConfig(specific_days=[30, 31]),
    )

    february = generate_projections([], [rule], date(2025, 2, 1), date(2025, 2, 28))
    march = generate_projections([], [rule], date(2025, 3, 1), date(2025, 3, 31))

    assert [(t.scheduled_date, t.occurrence_id) for t in february] == [(date(2025, 2, 28), "pay_2025-02-1")]
    assert [t.occurrence_id for t in march] == ["pay_2025-03-1", "pay_2025-03-2"]
