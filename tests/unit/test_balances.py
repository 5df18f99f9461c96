"""Unit tests for the daily balance forecast"""

import pytest
from datetime import date

from cashflow_gateway.domain.balances import calculate_daily_balances, get_balance_status
from cashflow_gateway.domain.exceptions import InvalidDateRangeError
from cashflow_gateway.domain.models import (
    BalanceStatus,
    SourceType,
    Transaction,
    TransactionStatus,
    TransactionType,
)

DAY_ONE = date(2025, 3, 1)


def make_transaction(txn_id, type, amount, on=DAY_ONE, status=TransactionStatus.PROJECTED, actual=None):
    return Transaction(
        id=txn_id,
        name=txn_id,
        type=type,
        category="misc",
        source_type=SourceType.MANUAL,
        scheduled_date=on,
        projected_amount=amount,
        status=status,
        actual_amount=actual,
    )


@pytest.fixture
def day_one_transactions():
    return [
        make_transaction("pay", TransactionType.INCOME, 180.0, status=TransactionStatus.COMPLETED, actual=200.0),
        make_transaction("bill", TransactionType.EXPENSE, 1000.0, status=TransactionStatus.SKIPPED),
    ]


def test_skipped_transactions_do_not_move_balance(day_one_transactions):
    balances = calculate_daily_balances(500.0, day_one_transactions, DAY_ONE, DAY_ONE)
    day = balances[DAY_ONE]

    assert day.opening_balance == 500.0
    assert day.closing_balance == 700.0
    assert day.total_income == 200.0
    assert day.total_expenses == 0.0
    assert len(day.transactions) == 2
    assert day.status == BalanceStatus.SAFE


def test_custom_warning_threshold(day_one_transactions):
    balances = calculate_daily_balances(500.0, day_one_transactions, DAY_ONE, DAY_ONE, warning_threshold=800.0)
    assert balances[DAY_ONE].status == BalanceStatus.WARNING


def test_days_chain_opening_from_previous_close():
    transactions = [
        make_transaction("rent", TransactionType.EXPENSE, 300.0, on=date(2025, 3, 2)),
        make_transaction("salary", TransactionType.INCOME, 100.0, on=date(2025, 3, 3)),
    ]

    balances = calculate_daily_balances(1000.0, transactions, DAY_ONE, date(2025, 3, 4))

    assert list(balances) == [date(2025, 3, 1), date(2025, 3, 2), date(2025, 3, 3), date(2025, 3, 4)]
    assert balances[date(2025, 3, 2)].closing_balance == 700.0
    assert balances[date(2025, 3, 3)].opening_balance == 700.0
    assert balances[date(2025, 3, 4)].closing_balance == 800.0


def test_negative_balance_is_danger():
    transactions = [make_transaction("car", TransactionType.EXPENSE, 150.0)]
    balances = calculate_daily_balances(100.0, transactions, DAY_ONE, DAY_ONE)

    assert balances[DAY_ONE].closing_balance == -50.0
    assert balances[DAY_ONE].status == BalanceStatus.DANGER


def test_transactions_outside_range_ignored():
    transactions = [make_transaction("early", TransactionType.EXPENSE, 999.0, on=date(2025, 2, 28))]
    balances = calculate_daily_balances(100.0, transactions, DAY_ONE, date(2025, 3, 2))

    assert balances[date(2025, 3, 2)].closing_balance == 100.0


def test_inverted_range_raises():
    with pytest.raises(InvalidDateRangeError):
        calculate_daily_balances(0.0, [], date(2025, 3, 2), DAY_ONE)


@pytest.mark.parametrize(
    "balance,expected",
    [(-0.01, BalanceStatus.DANGER), (0.0, BalanceStatus.WARNING), (499.99, BalanceStatus.WARNING), (500.0, BalanceStatus.SAFE)],
)
def test_balance_status_boundaries(balance, expected):
    assert get_balance_status(balance) == expected
