"""Unit tests for domain model invariants and projection handles"""

import pytest
from datetime import date

from cashflow_gateway.domain.exceptions import (
    InvalidOccurrenceIdError,
    InvalidProjectionIdError,
    InvalidRuleConfigurationError,
)
from cashflow_gateway.domain.models import (
    CreditConfig,
    FixedExpense,
    Frequency,
    InstallmentConfig,
    LoanConfig,
    OccurrenceOverride,
    ProjectionHandle,
    SourceType,
    Transaction,
    TransactionStatus,
    TransactionType,
    is_projection_id,
)


def test_projection_id_round_trip():
    handle = ProjectionHandle(source_id="rent", occurrence_id="rent_2025-02", scheduled_date=date(2025, 1, 31))

    assert handle.projection_id == "proj_rent::2025-01-31::rent_2025-02"
    assert ProjectionHandle.parse(handle.projection_id) == handle


def test_parse_legacy_projection_id():
    """Test two-segment ids parse with no occurrence id"""
    handle = ProjectionHandle.parse("proj_rent::2025-01-01")

    assert handle.source_id == "rent"
    assert handle.occurrence_id is None
    assert handle.scheduled_date == date(2025, 1, 1)


@pytest.mark.parametrize(
    "projection_id",
    [
        "txn_123",
        "proj_rent",
        "proj_rent::2025-13-01::rent_2025-13",
        "proj_rent::2025-01-01::other_2025-01",
        "proj_rent::2025-01-01::rent_2025-01::extra",
        "proj_::2025-01-01",
    ],
)
def test_parse_rejects_malformed_ids(projection_id):
    with pytest.raises(InvalidProjectionIdError):
        ProjectionHandle.parse(projection_id)


def test_is_projection_id():
    assert is_projection_id("proj_rent::2025-01-01")
    assert not is_projection_id("txn_abc")


def test_rule_id_cannot_contain_separator():
    with pytest.raises(InvalidRuleConfigurationError):
        FixedExpense(
            id="rent::home",
            name="Rent",
            category="housing",
            amount=1500.0,
            frequency=Frequency.MONTHLY,
            start_date=date(2025, 1, 1),
        )


def test_override_keys_must_belong_to_rule():
    with pytest.raises(InvalidOccurrenceIdError):
        FixedExpense(
            id="rent",
            name="Rent",
            category="housing",
            amount=1500.0,
            frequency=Frequency.MONTHLY,
            start_date=date(2025, 1, 1),
            occurrence_overrides={"gym_2025-01": OccurrenceOverride(skipped=True)},
        )


def test_loan_config_invariants():
    with pytest.raises(InvalidRuleConfigurationError):
        LoanConfig(principal_amount=1000, current_balance=1200, interest_rate=5, term_months=12)
    with pytest.raises(InvalidRuleConfigurationError):
        LoanConfig(principal_amount=1000, current_balance=500, interest_rate=5, term_months=12, payments_made=13)
    with pytest.raises(InvalidRuleConfigurationError):
        LoanConfig(principal_amount=1000, current_balance=500, interest_rate=5, term_months=0)

    loan = LoanConfig(principal_amount=1000, current_balance=500, interest_rate=5, term_months=12, payments_made=4)
    assert loan.remaining_payments == 8


def test_credit_config_invariants():
    with pytest.raises(InvalidRuleConfigurationError):
        CreditConfig(credit_limit=1000, current_balance=-1, apr=20)
    with pytest.raises(InvalidRuleConfigurationError):
        CreditConfig(credit_limit=1000, current_balance=100, apr=20, due_date=32)

    assert CreditConfig(credit_limit=1000, current_balance=100, apr=24).monthly_rate == pytest.approx(0.02)


def test_installment_config_invariants():
    with pytest.raises(InvalidRuleConfigurationError):
        InstallmentConfig(total_amount=400, installment_count=0, installment_amount=100)
    with pytest.raises(InvalidRuleConfigurationError):
        InstallmentConfig(total_amount=400, installment_count=4, installment_amount=100, installments_paid=5)

    plan = InstallmentConfig(total_amount=400, installment_count=4, installment_amount=100, installments_paid=1)
    assert plan.remaining_installments == 3


def test_effective_values_of_completed_transaction(manual_expense):
    assert manual_expense.effective_amount == 75.0
    assert manual_expense.effective_date == date(2025, 1, 12)
    assert not manual_expense.is_projection


def test_effective_values_of_projected_transaction():
    t = Transaction(
        id="txn_1",
        name="Gym",
        type=TransactionType.EXPENSE,
        category="health",
        source_type=SourceType.MANUAL,
        scheduled_date=date(2025, 3, 1),
        projected_amount=40.0,
        status=TransactionStatus.PROJECTED,
        actual_amount=35.0,
        actual_date=date(2025, 3, 2),
    )

    assert t.effective_amount == 40.0
    assert t.effective_date == date(2025, 3, 2)
