"""Pytest fixtures for testing"""

import pytest
from datetime import date
from fastapi.testclient import TestClient

from cashflow_gateway.api.main import create_app
from cashflow_gateway.domain.models import (
    CreditCardExpense,
    CreditConfig,
    FixedExpense,
    Frequency,
    IncomeSource,
    InstallmentConfig,
    InstallmentExpense,
    LoanConfig,
    LoanExpense,
    ScheduleConfig,
    SourceType,
    Transaction,
    TransactionStatus,
    TransactionType,
    WeekendAdjustment,
)


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client"""
    return TestClient(create_app())


@pytest.fixture
def salary() -> IncomeSource:
    """Bi-weekly salary paid on Fridays"""
    return IncomeSource(
        id="salary",
        name="Salary",
        category="employment",
        amount=2000.0,
        frequency=Frequency.BI_WEEKLY,
        start_date=date(2025, 1, 3),
        schedule=ScheduleConfig(day_of_week=4),
    )


@pytest.fixture
def rent() -> FixedExpense:
    """Rent due on the 1st, moved to the previous business day on weekends"""
    return FixedExpense(
        id="rent",
        name="Rent",
        category="housing",
        amount=1500.0,
        frequency=Frequency.MONTHLY,
        start_date=date(2025, 1, 1),
        schedule=ScheduleConfig(day_of_month=1),
        weekend_adjustment=WeekendAdjustment.BEFORE,
    )


@pytest.fixture
def car_loan() -> LoanExpense:
    return LoanExpense(
        id="car",
        name="Car loan",
        category="debt",
        amount=1032.80,
        frequency=Frequency.MONTHLY,
        start_date=date(2025, 1, 15),
        loan=LoanConfig(
            principal_amount=12000.0,
            current_balance=12000.0,
            interest_rate=6.0,
            term_months=12,
        ),
    )


@pytest.fixture
def credit_card() -> CreditCardExpense:
    return CreditCardExpense(
        id="visa",
        name="Visa",
        category="debt",
        amount=25.0,
        frequency=Frequency.MONTHLY,
        start_date=date(2025, 1, 1),
        credit=CreditConfig(
            credit_limit=5000.0,
            current_balance=1000.0,
            apr=24.0,
            minimum_payment_percent=2.0,
            minimum_payment_floor=25.0,
            due_date=10,
        ),
    )


@pytest.fixture
def laptop_plan() -> InstallmentExpense:
    return InstallmentExpense(
        id="laptop",
        name="Laptop",
        category="electronics",
        amount=100.0,
        frequency=Frequency.MONTHLY,
        start_date=date(2025, 1, 20),
        installment=InstallmentConfig(
            total_amount=400.0,
            installment_count=4,
            installment_amount=100.0,
            installments_paid=1,
        ),
    )


@pytest.fixture
def manual_expense() -> Transaction:
    return Transaction(
        id="txn_manual_1",
        name="Coffee machine",
        type=TransactionType.EXPENSE,
        category="household",
        source_type=SourceType.MANUAL,
        scheduled_date=date(2025, 1, 12),
        projected_amount=80.0,
        status=TransactionStatus.COMPLETED,
        actual_amount=75.0,
    )
