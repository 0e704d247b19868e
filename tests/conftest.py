"""Pytest fixtures for testing"""

import pytest
from datetime import date
from fastapi.testclient import TestClient
from finance_engine.api.dependencies import get_today
from finance_engine.api.main import create_app
from finance_engine.domain.models import (
    Account,
    Bill,
    Cadence,
    Card,
    FinanceRecords,
    Goal,
    Income,
    Loan,
    Purchase,
    ReconciliationStatus,
)


FIXED_TODAY = date(2024, 5, 15)


@pytest.fixture
def today() -> date:
    """Reference date shared by domain and API tests"""
    return FIXED_TODAY


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client pinned to a fixed reference date"""
    app = create_app()
    app.dependency_overrides[get_today] = lambda: FIXED_TODAY
    return TestClient(app)


@pytest.fixture
def sample_card() -> Card:
    """Card with a 500 statement balance at 24% APR and a fixed 25 minimum"""
    return Card(
        card_id="card_1",
        name="Everyday Card",
        credit_limit=1000,
        used_limit=500,
        statement_balance=500,
        minimum_payment=25,
        apr=24,
        due_day=21,
    )


@pytest.fixture
def sample_records(sample_card: Card) -> FinanceRecords:
    """A small household: one salary, one yearly bill, a card, a loan and a goal"""
    return FinanceRecords(
        incomes=(Income(income_id="inc_1", source="Salary", amount=3000),),
        bills=(Bill(bill_id="bill_1", name="Insurance", amount=1200, cadence=Cadence.YEARLY),),
        cards=(sample_card,),
        loans=(Loan(loan_id="loan_1", name="Car loan", balance=1200, minimum_payment=100),),
        purchases=(
            Purchase(purchase_id="p1", item="Groceries", amount=50, purchase_date=date(2024, 5, 10)),
            Purchase(
                purchase_id="p2",
                item="Coffee",
                amount=20,
                purchase_date=date(2024, 5, 12),
                reconciliation_status=ReconciliationStatus.PENDING,
            ),
            Purchase(
                purchase_id="p3",
                item="Books",
                amount=30,
                purchase_date=date(2024, 4, 20),
                reconciliation_status=ReconciliationStatus.RECONCILED,
            ),
        ),
        accounts=(Account(account_id="acc_1", name="Current", balance=5000, liquid=True),),
        goals=(
            Goal(
                goal_id="goal_1",
                title="Holiday",
                target_amount=1000,
                current_amount=250,
                target_date=date(2024, 12, 31),
                created_at=date(2024, 1, 1),
            ),
        ),
    )


@pytest.fixture
def sample_records_payload() -> dict:
    """JSON form of sample_records for API tests"""
    return {
        "incomes": [{"income_id": "inc_1", "source": "Salary", "amount": 3000}],
        "bills": [{"bill_id": "bill_1", "name": "Insurance", "amount": 1200, "cadence": "yearly"}],
        "cards": [
            {
                "card_id": "card_1",
                "name": "Everyday Card",
                "credit_limit": 1000,
                "used_limit": 500,
                "statement_balance": 500,
                "minimum_payment": 25,
                "apr": 24,
                "due_day": 21,
            }
        ],
        "loans": [{"loan_id": "loan_1", "name": "Car loan", "balance": 1200, "minimum_payment": 100}],
        "purchases": [
            {"purchase_id": "p1", "item": "Groceries", "amount": 50, "purchase_date": "2024-05-10"},
            {
                "purchase_id": "p2",
                "item": "Coffee",
                "amount": 20,
                "purchase_date": "2024-05-12",
                "reconciliation_status": "pending",
            },
            {
                "purchase_id": "p3",
                "item": "Books",
                "amount": 30,
                "purchase_date": "2024-04-20",
                "reconciliation_status": "reconciled",
            },
        ],
        "accounts": [{"account_id": "acc_1", "name": "Current", "balance": 5000, "liquid": True}],
        "goals": [
            {
                "goal_id": "goal_1",
                "title": "Holiday",
                "target_amount": 1000,
                "current_amount": 250,
                "target_date": "2024-12-31",
                "created_at": "2024-01-01",
            }
        ],
    }
