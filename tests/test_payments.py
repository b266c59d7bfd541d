# tests/test_payments.py

"""
Tests for penalties, walk-in payments, reverts and receipts.
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from services.contracts import CONTRACTS, SCHEDULES
from services.payments import TRANSACTIONS, calculate_penalty, days_overdue_after_grace


@pytest.fixture
def contract(supabase):
    return supabase.seed(CONTRACTS, {
        "contract_number": "CTS-2025-ABC12345",
        "monthly_installment": 10_000,
        "downpayment_total": 200_000,
        "remaining_downpayment": 175_000,
        "contract_status": "active",
    })[0]


@pytest.fixture
def schedule(supabase, contract):
    return supabase.seed(SCHEDULES, {
        "contract_id": contract["contract_id"],
        "installment_number": 1,
        "scheduled_amount": 10_000,
        "remaining_amount": 10_000,
        "paid_amount": 0,
        "due_date": "2999-01-01",
        "payment_status": "pending",
    })[0]


@pytest.fixture
def walk_in_rpc(supabase):
    """Stand-in for the record_walk_in_payment database function."""

    def record(params):
        return [{
            "transaction_id": "txn-1",
            "schedule_id": params["p_schedule_id"],
            "or_number": "OR-0001",
            "amount_paid": params["p_amount_paid"],
            "penalty_paid": params["p_penalty_paid"],
        }]

    supabase.rpcs["record_walk_in_payment"] = record
    return record


# -------------------------------------------------
# Penalty
# -------------------------------------------------
def test_no_penalty_within_grace():
    schedule = {"due_date": "2025-01-01", "remaining_amount": 10_000}
    assert calculate_penalty(schedule, today=date(2025, 1, 4)) == 0.0


def test_penalty_accrues_daily_after_grace():
    schedule = {"due_date": "2025-01-01", "remaining_amount": 10_000}
    today = date(2025, 1, 14)

    assert days_overdue_after_grace(schedule, today) == 10
    # 10,000 x 3% / 30 x 10 days
    assert calculate_penalty(schedule, today) == 100.0


def test_penalty_uses_schedule_rate():
    schedule = {"due_date": "2025-01-01", "remaining_amount": 9_000, "penalty_rate": 0.05}
    assert calculate_penalty(schedule, today=date(2025, 1, 7)) == 45.0


# -------------------------------------------------
# Walk-in
# -------------------------------------------------
def test_walk_in_details(client: TestClient, schedule):
    response = client.get("/api/contracts/payment/walk-in", params={"schedule_id": schedule["schedule_id"]})
    data = response.json()["data"]
    assert data["schedule"]["calculated_penalty"] == 0.0
    assert data["schedule"]["grace_period_end"] == "2999-01-04"
    assert data["transactions"] == []


def test_full_walk_in_payment(client: TestClient, supabase, schedule, walk_in_rpc):
    response = client.post("/api/contracts/payment/walk-in", json={
        "schedule_id": schedule["schedule_id"],
        "payment_type": "full",
        "payment_method": "cash",
        "penalty_paid": 999,
    })
    assert response.status_code == 200
    assert response.json()["message"] == "Walk-in payment processed successfully"

    name, params = supabase.rpc_calls[0]
    assert name == "record_walk_in_payment"
    assert params["p_amount_paid"] == 10_000
    # Client-supplied penalty is ignored
    assert params["p_penalty_paid"] == 0.0

    notification = supabase.rows("notifications_tbl")[0]
    assert notification["notification_type"] == "payment_received"
    assert notification["recipient_role"] == "collection"


def test_partial_below_minimum(client: TestClient, schedule, walk_in_rpc):
    response = client.post("/api/contracts/payment/walk-in", json={
        "schedule_id": schedule["schedule_id"],
        "payment_type": "partial",
        "amount_paid": 500,
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Minimum payment is ₱1000.00"


def test_partial_above_remaining(client: TestClient, schedule, walk_in_rpc):
    response = client.post("/api/contracts/payment/walk-in", json={
        "schedule_id": schedule["schedule_id"],
        "payment_type": "partial",
        "amount_paid": 12_000,
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Payment exceeds remaining balance"


def test_partial_payment_passes_amount(client: TestClient, supabase, schedule, walk_in_rpc):
    response = client.post("/api/contracts/payment/walk-in", json={
        "schedule_id": schedule["schedule_id"],
        "payment_type": "partial",
        "amount_paid": "2500",
    })
    assert response.status_code == 200
    assert supabase.rpc_calls[0][1]["p_amount_paid"] == 2500.0


def test_settled_installment_cannot_be_paid(client: TestClient, supabase, schedule, walk_in_rpc):
    supabase.tables[SCHEDULES][0]["remaining_amount"] = 0
    supabase.tables[SCHEDULES][0]["scheduled_amount"] = 0

    response = client.post("/api/contracts/payment/walk-in", json={"schedule_id": schedule["schedule_id"]})

    assert response.status_code == 400
    assert supabase.rpc_calls == []


def test_walk_in_unknown_schedule(client: TestClient):
    response = client.post("/api/contracts/payment/walk-in", json={"schedule_id": "missing"})
    assert response.status_code == 404


# -------------------------------------------------
# Revert
# -------------------------------------------------
def test_revert_paid_installment(client: TestClient, supabase, contract, schedule):
    sid = schedule["schedule_id"]
    supabase.tables[SCHEDULES][0].update({"payment_status": "paid", "paid_amount": 10_000, "remaining_amount": 0})
    supabase.seed(TRANSACTIONS, {
        "contract_id": contract["contract_id"],
        "schedule_id": sid,
        "total_amount": 10_000,
        "payment_status": "completed",
        "transaction_date": "2025-02-01T10:00:00+00:00",
    })

    response = client.post("/api/contracts/payment/revert", json={"schedule_id": sid})

    assert response.status_code == 200
    assert response.json()["data"]["transactions_reverted"] == 1

    reverted = supabase.rows(SCHEDULES)[0]
    assert reverted["payment_status"] == "pending"
    assert reverted["remaining_amount"] == 10_000

    assert supabase.rows(TRANSACTIONS)[0]["transaction_status"] == "reverted"
    assert supabase.rows(CONTRACTS)[0]["remaining_balance"] == 200_000


def test_revert_unpaid_installment(client: TestClient, schedule):
    response = client.post("/api/contracts/payment/revert", json={"schedule_id": schedule["schedule_id"]})
    assert response.status_code == 400
    assert response.json()["message"] == "Payment schedule is not in paid status"


# -------------------------------------------------
# History / reports
# -------------------------------------------------
def _seed_transactions(supabase, contract):
    supabase.seed(
        TRANSACTIONS,
        {"transaction_id": "t1", "contract_id": contract["contract_id"], "total_amount": 10_000,
         "penalty_paid": 100, "payment_method": "cash", "payment_status": "completed",
         "transaction_date": "2025-02-01T10:00:00+00:00"},
        {"transaction_id": "t2", "contract_id": contract["contract_id"], "total_amount": 5_000,
         "penalty_paid": 0, "payment_method": "check", "payment_status": "pending",
         "transaction_date": "2025-02-15T23:30:00+00:00"},
        {"transaction_id": "t3", "contract_id": "other", "total_amount": 1_000,
         "payment_method": "cash", "payment_status": "completed",
         "transaction_date": "2025-03-01T08:00:00+00:00"},
    )


def test_history_requires_an_id(client: TestClient):
    response = client.get("/api/contracts/payment/history")
    assert response.status_code == 400
    assert response.json()["message"] == "Contract ID or Schedule ID is required"


def test_history_summary(client: TestClient, supabase, contract):
    _seed_transactions(supabase, contract)

    body = client.get("/api/contracts/payment/history", params={"contract_id": contract["contract_id"]}).json()

    assert [t["transaction_id"] for t in body["data"]] == ["t2", "t1"]
    assert body["summary"]["total_amount_paid"] == 15_000
    assert body["summary"]["total_penalties_paid"] == 100
    assert body["summary"]["payment_methods"] == ["cash", "check"]
    assert body["summary"]["completed_count"] == 1
    assert body["summary"]["pending_count"] == 1


def test_transactions_report_filters(client: TestClient, supabase, contract):
    _seed_transactions(supabase, contract)

    body = client.get("/api/contracts/payment/transactions", params={"payment_method": "cash"}).json()
    assert {t["transaction_id"] for t in body["data"]} == {"t1", "t3"}

    everything = client.get("/api/contracts/payment/transactions", params={"payment_status": "all"}).json()
    assert everything["summary"]["total_transactions"] == 3


# -------------------------------------------------
# Receipts
# -------------------------------------------------
def test_single_receipt(client: TestClient, supabase, contract):
    _seed_transactions(supabase, contract)
    body = client.get("/api/transactions/receipt", params={"transaction_id": "t1"}).json()
    assert body["type"] == "single"
    assert body["data"]["transaction_id"] == "t1"


def test_missing_receipt(client: TestClient):
    response = client.get("/api/transactions/receipt", params={"transaction_id": "nope"})
    assert response.status_code == 404


def test_range_receipt_includes_whole_end_day(client: TestClient, supabase, contract):
    _seed_transactions(supabase, contract)

    body = client.get("/api/transactions/receipt", params={
        "start_date": "2025-02-01",
        "end_date": "2025-02-15",
    }).json()

    assert body["type"] == "range"
    assert [t["transaction_id"] for t in body["data"]] == ["t2", "t1"]


def test_receipt_needs_parameters(client: TestClient):
    response = client.get("/api/transactions/receipt")
    assert response.status_code == 400
