"""Integration tests for API endpoints"""

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient


@pytest.fixture
def rent_rule():
    return {
        "id": "rent",
        "name": "Rent",
        "category": "housing",
        "amount": 1500.0,
        "frequency": "monthly",
        "start_date": "2025-01-01",
        "schedule": {"day_of_month": 1},
        "weekend_adjustment": "before",
        "expense_type": "fixed",
    }


@pytest.fixture
def salary_source():
    return {
        "id": "salary",
        "name": "Salary",
        "category": "employment",
        "amount": 2000.0,
        "frequency": "bi-weekly",
        "start_date": "2025-01-03",
        "schedule": {"day_of_week": 4},
    }


@pytest.fixture
def projection_request(rent_rule, salary_source):
    return {
        "view_start": "2025-01-01",
        "view_end": "2025-03-31",
        "income_sources": [salary_source],
        "expense_rules": [rent_rule],
        "stored_transactions": [
            {
                "id": "txn_rent_feb",
                "name": "Rent",
                "type": "expense",
                "category": "housing",
                "source_type": "expense_rule",
                "scheduled_date": "2025-01-31",
                "projected_amount": 1500.0,
                "status": "completed",
                "source_id": "rent",
                "occurrence_id": "rent_2025-02",
                "actual_amount": 1450.0,
            }
        ],
    }


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["max_occurrences"] == 500


def test_metrics_endpoint(client: TestClient, projection_request):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/projections", json=projection_request)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "cashflow_projections_total" in response.text
    assert "cashflow_merge_outcomes_total" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]


def test_projections_endpoint(client: TestClient, projection_request):
    """Test POST /v1/projections merges stored records over projections"""
    response = client.post("/v1/projections", json=projection_request)

    assert response.status_code == 200
    transactions = response.json()["transactions"]

    rent = [t for t in transactions if t["source_id"] == "rent"]
    assert [t["occurrence_id"] for t in rent] == ["rent_2025-01", "rent_2025-02", "rent_2025-03"]
    assert rent[0]["id"] == "proj_rent::2025-01-01::rent_2025-01"
    assert rent[0]["is_projection"] is True
    assert rent[1]["id"] == "txn_rent_feb"
    assert rent[1]["is_projection"] is False
    assert rent[1]["effective_amount"] == 1450.0

    salary = [t for t in transactions if t["source_id"] == "salary"]
    assert len(salary) == 7
    assert all(t["type"] == "income" for t in salary)

    dates = [t["effective_date"] for t in transactions]
    assert dates == sorted(dates)


def test_projections_inverted_window(client: TestClient, projection_request):
    projection_request["view_start"] = "2025-04-01"
    response = client.post("/v1/projections", json=projection_request)
    assert response.status_code == 400


def test_loan_rule_without_config_rejected(client: TestClient):
    response = client.post(
        "/v1/projections",
        json={
            "view_start": "2025-01-01",
            "view_end": "2025-12-31",
            "expense_rules": [
                {
                    "id": "car",
                    "name": "Car loan",
                    "category": "debt",
                    "amount": 500.0,
                    "frequency": "monthly",
                    "start_date": "2025-01-15",
                    "expense_type": "cash_loan",
                }
            ],
        },
    )
    assert response.status_code == 422


def test_loan_rule_projections(client: TestClient):
    response = client.post(
        "/v1/projections",
        json={
            "view_start": "2025-01-01",
            "view_end": "2025-12-31",
            "expense_rules": [
                {
                    "id": "car",
                    "name": "Car loan",
                    "category": "debt",
                    "amount": 1032.80,
                    "frequency": "monthly",
                    "start_date": "2025-01-15",
                    "expense_type": "cash_loan",
                    "loan": {
                        "principal_amount": 12000.0,
                        "current_balance": 12000.0,
                        "interest_rate": 6.0,
                        "term_months": 12,
                    },
                }
            ],
        },
    )

    assert response.status_code == 200
    transactions = response.json()["transactions"]
    assert len(transactions) == 12
    assert transactions[0]["payment_breakdown"]["interest_paid"] == pytest.approx(60.0)
    assert transactions[-1]["payment_breakdown"]["payment_number"] == 12


def test_balances_endpoint(client: TestClient, projection_request):
    """Test POST /v1/balances walks every day of the window"""
    projection_request["baseline"] = 3000.0
    projection_request["view_end"] = "2025-01-31"

    response = client.post("/v1/balances", json=projection_request)

    assert response.status_code == 200
    balances = response.json()["balances"]
    assert len(balances) == 31

    first = balances[0]
    assert first["date"] == "2025-01-01"
    assert first["opening_balance"] == 3000.0
    assert first["closing_balance"] == 1500.0
    assert first["transaction_ids"] == ["proj_rent::2025-01-01::rent_2025-01"]

    # three paydays and the February rent paid early on the 31st
    assert balances[-1]["closing_balance"] == pytest.approx(3000.0 - 1500.0 + 6000.0 - 1450.0)


def test_loan_schedule_endpoint(client: TestClient):
    response = client.post(
        "/v1/loans/schedule",
        json={"principal": 12000.0, "annual_rate": 6.0, "start_date": "2025-01-15", "term_months": 12},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["payments"] == 12
    assert data["schedule"][0]["payment"] == pytest.approx(1032.80, abs=0.01)
    assert data["schedule"][-1]["remaining_balance"] == pytest.approx(0, abs=0.01)
    assert data["total_paid"] == pytest.approx(12000.0 + data["total_interest"])


def test_credit_payoff_endpoint(client: TestClient):
    response = client.post(
        "/v1/credit-cards/payoff",
        json={
            "credit": {
                "credit_limit": 5000.0,
                "current_balance": 1000.0,
                "apr": 24.0,
                "due_date": 10,
                "payment_strategy": "fixed",
                "fixed_payment_amount": 100.0,
            },
            "start_date": "2025-01-10",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["months_to_payoff"] is not None
    assert data["schedule"][0]["date"] == "2025-01-10"
    assert data["is_minimum_payment_trap"] is False
    assert "year" in data["payoff_time"] or "month" in data["payoff_time"]


def test_credit_payoff_never_pays_off(client: TestClient):
    """Test a payment equal to interest reports a never-ending payoff as nulls"""
    response = client.post(
        "/v1/credit-cards/payoff",
        json={
            "credit": {
                "credit_limit": 10000.0,
                "current_balance": 5000.0,
                "apr": 24.0,
                "payment_strategy": "fixed",
                "fixed_payment_amount": 100.0,
            },
            "start_date": "2025-01-01",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["payoff_date"] is None
    assert data["months_to_payoff"] is None
    assert data["payoff_time"] == "Never (payment too low)"
    assert data["is_minimum_payment_trap"] is True


def test_installment_schedule_endpoint(client: TestClient):
    response = client.post(
        "/v1/installments/schedule",
        json={
            "installment": {
                "total_amount": 400.0,
                "installment_count": 4,
                "installment_amount": 100.0,
                "installments_paid": 1,
            },
            "start_date": "2025-01-20",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["remaining_installments"] == 3
    assert [i["due_date"] for i in data["schedule"]] == ["2025-02-20", "2025-03-20", "2025-04-20"]
    assert data["schedule"][-1]["remaining_balance"] == 0


def test_forecast_summary_endpoint(client: TestClient, rent_rule):
    response = client.post(
        "/v1/forecast/summary",
        json={
            "view_start": "2025-01-01",
            "view_end": "2025-03-31",
            "expense_rules": [rent_rule],
            "balance": 2000.0,
            "today": "2025-01-01",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["runway"]["run_out_date"] == "2025-01-31"
    assert data["next_crunch"] == {"date": "2025-01-31", "shortfall": 1000.0}
    assert data["bill_coverage"]["upcoming_bills"][0]["can_cover"] is True
    assert data["bill_coverage"]["can_cover_all"] is True


@patch("cashflow_gateway.api.v1.debts.generate_installment_schedule")
def test_installment_schedule_unexpected_error(mock_schedule, client: TestClient):
    """Test unexpected failures surface as a 500 rather than a traceback"""
    mock_schedule.side_effect = RuntimeError("boom")

    response = client.post(
        "/v1/installments/schedule",
        json={
            "installment": {"total_amount": 400.0, "installment_count": 4, "installment_amount": 100.0},
            "start_date": "2025-01-20",
        },
    )

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"
