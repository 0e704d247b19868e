"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient

pytestmark = pytest.mark.integration


@pytest.fixture
def netflix_purchases() -> list[dict]:
    """Two statement lines for the same subscription"""
    return [
        {"purchase_id": "a", "item": "Netflix", "amount": 15.99, "purchase_date": "2024-05-01", "created_at": 1},
        {"purchase_id": "b", "item": "NETFLIX.COM", "amount": 15.99, "purchase_date": "2024-05-02", "created_at": 2},
    ]


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "finance-engine"}


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint after an operation"""
    client.post("/v1/cadence/monthly", json={"items": [{"amount": 100, "cadence": "weekly"}]})

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "finance_engine_operations_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_is_echoed(client: TestClient):
    """Test caller's X-Request-ID comes back, or one is generated"""
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_cadence_endpoint(client: TestClient):
    """Test POST /v1/cadence/monthly"""
    response = client.post(
        "/v1/cadence/monthly",
        json={"items": [{"amount": 1200, "cadence": "yearly"}, {"amount": 50, "cadence": "monthly"}]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["monthly_amounts"] == [100.0, 50.0]
    assert data["monthly_total"] == 150.0


def test_cadence_rejects_unknown_cadence(client: TestClient):
    """Test request validation rejects unsupported cadences"""
    response = client.post("/v1/cadence/monthly", json={"items": [{"amount": 10, "cadence": "hourly"}]})
    assert response.status_code == 422


def test_card_projection_endpoint(client: TestClient, sample_records_payload: dict):
    """Test POST /v1/debts/cards/projection"""
    response = client.post("/v1/debts/cards/projection", json={"cards": sample_records_payload["cards"]})

    assert response.status_code == 200
    data = response.json()
    projection = data["projections"][0]
    assert projection["interest_amount"] == 10.0
    assert projection["new_statement_balance"] == 510.0
    assert projection["planned_payment"] == 25.0
    assert projection["due_date"] == "2024-05-21"
    assert data["payoff_target"]["account_id"] == "card_1"
    assert data["payoff_backup"] is None
    assert data["portfolio"]["utilization"] == 0.5
    assert any(alert["alert_id"] == "due-card_1" for alert in data["alerts"])


def test_loan_projection_endpoint(client: TestClient, sample_records_payload: dict):
    """Test POST /v1/debts/loans/projection"""
    response = client.post("/v1/debts/loans/projection", json={"loans": sample_records_payload["loans"]})

    assert response.status_code == 200
    model = response.json()["portfolio"]["models"][0]
    assert model["projected_payoff_months"] == 12
    assert model["projected_payoff_date"] == "2025-05-01"
    assert len(model["rows"]) == 36
    assert model["horizons"]["12"]["total_payment"] == 1200.0


def test_loan_strategy_endpoint(client: TestClient):
    """Test POST /v1/debts/loans/strategy"""
    response = client.post(
        "/v1/debts/loans/strategy",
        json={
            "loans": [
                {"loan_id": "card", "name": "High rate", "balance": 1000, "apr": 20, "minimum_payment": 50},
                {"loan_id": "car", "name": "Low rate", "balance": 500, "apr": 5, "minimum_payment": 50},
            ],
            "monthly_overpay_budget": 100,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["recommended_mode"] == "avalanche"
    assert data["recommended_target"]["loan_id"] == "card"


def test_loan_what_if_endpoint(client: TestClient):
    """Test POST /v1/debts/loans/what-if"""
    response = client.post(
        "/v1/debts/loans/what-if",
        json={
            "loans": [{"loan_id": "a", "name": "A", "balance": 2000, "apr": 18, "minimum_payment": 60}],
            "extra_payment_delta": 50,
        },
    )

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["annual_interest_delta"] < 0
    assert result["scenario_input"]["loan_id"] == "all"


def test_loan_refinance_endpoint(client: TestClient):
    """Test POST /v1/debts/loans/refinance"""
    response = client.post(
        "/v1/debts/loans/refinance",
        json={
            "loan": {"loan_id": "l1", "name": "Loan", "balance": 1000, "minimum_payment": 100},
            "offer_apr": 0,
            "offer_fees": 50,
            "offer_term_months": 10,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["current_outstanding"] == 1000.0
    assert data["result"]["total_cost_delta"] == 50.0


def test_transfer_validation(client: TestClient):
    """Test POST /v1/accounts/transfers/validate"""
    ok = client.post(
        "/v1/accounts/transfers/validate",
        json={"source_account_id": "acc_1", "destination_account_id": "acc_2", "amount": 25.5},
    )
    same = client.post(
        "/v1/accounts/transfers/validate",
        json={"source_account_id": "acc_1", "destination_account_id": "acc_1", "amount": 25.5},
    )

    assert ok.status_code == 200
    assert ok.json()["amount"] == 25.5
    assert same.status_code == 422
    assert same.json()["detail"] == "Source and destination must be different accounts."


def test_duplicate_scan_and_resolve(client: TestClient, netflix_purchases: list[dict]):
    """Test scanning, merging, then re-resolving the same pair"""
    scan = client.post("/v1/purchases/duplicates", json={"purchases": netflix_purchases})
    assert scan.status_code == 200
    assert scan.json()["duplicate_count"] == 1
    match = scan.json()["matches"][0]

    body = {
        "purchases": netflix_purchases,
        "primary_id": match["primary_id"],
        "secondary_id": match["secondary_id"],
        "action": "merge",
    }
    merged = client.post("/v1/purchases/duplicates/resolve", json=body)
    assert merged.status_code == 200
    data = merged.json()
    assert data["applied"] is True
    assert [p["purchase_id"] for p in data["purchases"]] == ["a"]
    assert data["resolutions"]["resolved_pairs"] == [["a", "b"]]

    again = client.post(
        "/v1/purchases/duplicates/resolve",
        json={**body, "purchases": data["purchases"], "resolutions": data["resolutions"]},
    )
    assert again.status_code == 200
    assert again.json()["applied"] is False


def test_duplicate_resolve_missing_purchase(client: TestClient, netflix_purchases: list[dict]):
    """Test resolving a vanished purchase returns 404"""
    response = client.post(
        "/v1/purchases/duplicates/resolve",
        json={"purchases": netflix_purchases, "primary_id": "a", "secondary_id": "gone", "action": "merge"},
    )
    assert response.status_code == 404


def test_split_validation(client: TestClient):
    """Test template expansion and a mismatched manual split"""
    template = client.post(
        "/v1/purchases/splits/validate",
        json={
            "purchase_amount": 100,
            "template_lines": [
                {"category": "a", "percentage": 1},
                {"category": "b", "percentage": 1},
                {"category": "c", "percentage": 1},
            ],
        },
    )
    mismatch = client.post(
        "/v1/purchases/splits/validate",
        json={"purchase_amount": 100, "splits": [{"category": "Food", "amount": 90}]},
    )

    assert template.status_code == 200
    assert [s["amount"] for s in template.json()["splits"]] == [33.33, 33.33, 33.34]
    assert template.json()["total"] == 100.0
    assert mismatch.status_code == 422
    assert mismatch.json()["detail"] == "Split amounts must equal purchase total."


def test_recurring_endpoint(client: TestClient):
    """Test POST /v1/purchases/recurring"""
    purchases = [
        {"purchase_id": f"w{i}", "item": "Farm Box", "amount": 25, "purchase_date": f"2024-04-{1 + 7 * i:02d}"}
        for i in range(4)
    ]
    response = client.post("/v1/purchases/recurring", json={"purchases": purchases})

    assert response.status_code == 200
    candidate = response.json()["candidates"][0]
    assert candidate["suggested_cadence"] == "weekly"
    assert candidate["next_expected_date"] == "2024-04-29"


def test_goal_forecast_endpoint(client: TestClient):
    """Test POST /v1/goals/forecast with an unfunded goal"""
    response = client.post(
        "/v1/goals/forecast",
        json={
            "today": "2024-01-01",
            "goals": [
                {
                    "goal_id": "g1",
                    "title": "Laptop",
                    "target_amount": 1200,
                    "target_date": "2024-12-31",
                    "created_at": "2024-01-01",
                }
            ],
        },
    )

    assert response.status_code == 200
    data = response.json()
    goal = data["goals"][0]
    assert "No planned contribution set" in goal["at_risk_reasons"]
    assert goal["goal_health_score"] < 50
    assert [m["label"] for m in goal["milestones"]] == ["25%", "50%", "75%", "100%"]
    assert data["portfolio"]["goal_count"] == 1
    assert data["priorities"][0]["goal_id"] == "g1"


def test_goal_forecast_rejects_duplicate_funding(client: TestClient):
    """Test a duplicated funding source row rejects the request"""
    source = {"source_type": "account", "source_id": "acc_1", "allocation_percent": 20}
    response = client.post(
        "/v1/goals/forecast",
        json={
            "goals": [
                {
                    "goal_id": "g1",
                    "title": "Laptop",
                    "target_amount": 1200,
                    "created_at": "2024-01-01",
                    "funding_sources": [source, source],
                }
            ]
        },
    )
    assert response.status_code == 422


def test_planning_simulation_endpoint(client: TestClient):
    """Test POST /v1/planning/simulate with a short month"""
    response = client.post(
        "/v1/planning/simulate",
        json={
            "baseline": {"expected_income": 3000, "fixed_commitments": 2000, "variable_spending_cap": 1500},
            "month_key": "2024-05",
            "allocation_rules": [{"target": "savings", "percentage": 10}],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert [v["selected"] for v in data["versions"]] == [True, False, False]
    assert data["workspace"]["planned_monthly_net"] == -500.0
    assert data["allocation"]["total_percentage"] == 10.0
    assert [s["suggestion_id"] for s in data["suggestions"]] == ["trim-variable-cap", "shift-allocation"]
    assert sum(s["impact_amount"] for s in data["suggestions"]) == pytest.approx(500.0)
    assert [w["days"] for w in data["windows"]] == [30, 90, 365]


def test_planning_rejects_over_allocation(client: TestClient):
    """Test allocation rules above 100% are rejected"""
    response = client.post(
        "/v1/planning/simulate",
        json={
            "baseline": {"expected_income": 3000, "fixed_commitments": 2000, "variable_spending_cap": 500},
            "month_key": "2024-05",
            "allocation_rules": [{"target": "savings", "percentage": 70}, {"target": "goals", "percentage": 40}],
        },
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "Allocation percentages cannot exceed 100% in total."


def test_summary_endpoint(client: TestClient, sample_records_payload: dict):
    """Test POST /v1/summary uses the injected reference date"""
    response = client.post("/v1/summary", json={"records": sample_records_payload})

    assert response.status_code == 200
    data = response.json()
    assert data["summary"]["month_key"] == "2024-05"
    assert data["summary"]["monthly_commitments"] == 225.0
    assert data["summary"]["purchases_this_month"] == 50.0
    assert [w["days"] for w in data["forecast_windows"]] == [30, 90, 365]


def test_integrity_round_trip(client: TestClient, sample_records_payload: dict):
    """Test a built summary passes and a tampered one fails"""
    summary = client.post("/v1/summary", json={"records": sample_records_payload}).json()["summary"]

    clean = client.post("/v1/summary/integrity", json={"records": sample_records_payload, "summary": summary})
    tampered = client.post(
        "/v1/summary/integrity",
        json={"records": sample_records_payload, "summary": {**summary, "monthly_bills": 90.0}},
    )

    assert clean.status_code == 200
    assert clean.json()["fail_count"] == 0
    assert clean.json()["pass_count"] == 26
    assert tampered.status_code == 200
    bills = next(c for c in tampered.json()["checks"] if c["check_id"] == "bills-monthly")
    assert bills["status"] == "fail"
    assert bills["detail"] == "Mismatch (-10.00)"


def test_integrity_rebuilds_missing_summary(client: TestClient, sample_records_payload: dict):
    """Test integrity without a summary checks a freshly built one"""
    response = client.post("/v1/summary/integrity", json={"records": sample_records_payload})

    assert response.status_code == 200
    assert response.json()["fail_count"] == 0


def test_summary_feeds_planning(client: TestClient, sample_records_payload: dict):
    """Test the summary's plan baseline is accepted by the planning simulator"""
    baseline = client.post("/v1/summary", json={"records": sample_records_payload}).json()["plan_baseline"]
    assert baseline == {"expected_income": 3000.0, "fixed_commitments": 225.0, "variable_spending_cap": 50.0}

    response = client.post("/v1/planning/simulate", json={"baseline": baseline, "month_key": "2024-05"})
    assert response.status_code == 200
    assert response.json()["suggestions"][0]["suggestion_id"] == "stable-plan"
