# tests/test_book_tour.py

"""
Tests for tour bookings and the two-step staff approval.
"""

import pytest
from fastapi.testclient import TestClient

from core.errors import StateConflict
from services.approvals import APPOINTMENTS, CS_APPROVAL, apply_tour_transition


@pytest.fixture
def appointment(supabase):
    return supabase.seed(APPOINTMENTS, {
        "property_id": "prop-1",
        "property_title": "Model A - Lot 12",
        "client_name": "Juan Dela Cruz",
        "client_email": "juan@example.com",
        "appointment_date": "2025-06-01",
        "appointment_time": "10:00",
        "status": "pending",
    })[0]


def _status(supabase, appointment_id):
    return next(r for r in supabase.rows(APPOINTMENTS) if r["appointment_id"] == appointment_id)["status"]


# -------------------------------------------------
# Booking
# -------------------------------------------------
def test_book_tour_creates_pending_appointment(client: TestClient, supabase):
    response = client.post("/api/book-tour", json={
        "property_id": "prop-1",
        "property_title": "Model A",
        "client_name": " Maria Santos ",
        "client_email": "Maria@Example.com",
        "client_phone": "",
        "appointment_date": "2025-06-01",
        "appointment_time": "14:00",
    })
    assert response.status_code == 200

    data = response.json()["data"]
    assert data["status"] == "pending"
    assert data["client_email"] == "maria@example.com"
    assert data["client_name"] == "Maria Santos"
    assert data["client_phone"] is None

    notifications = supabase.rows("notifications_tbl")
    assert [n["notification_type"] for n in notifications] == ["tour_booked"]


def test_book_tour_requires_fields(client: TestClient):
    response = client.post("/api/book-tour", json={"property_id": "prop-1"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_book_tour_survives_notification_failure(client: TestClient, supabase):
    supabase.fail_on("notifications_tbl", "insert")
    response = client.post("/api/book-tour", json={
        "property_id": "prop-1",
        "client_name": "Maria",
        "client_email": "maria@example.com",
        "appointment_date": "2025-06-01",
        "appointment_time": "14:00",
    })
    assert response.status_code == 200
    assert len(supabase.rows(APPOINTMENTS)) == 1


def test_list_bookings_by_email(client: TestClient, appointment):
    response = client.get("/api/book-tour", params={"clientEmail": "JUAN@example.com"})
    body = response.json()
    assert body["total"] == 1
    assert body["message"] == "Found 1 appointments"


# -------------------------------------------------
# Approval chain
# -------------------------------------------------
def test_full_approval_chain(client: TestClient, supabase, appointment, cs_user, sales_user):
    aid = appointment["appointment_id"]

    first = client.post("/api/book-tour/approve", json={"appointment_id": aid, "approver_id": cs_user.id})
    assert first.status_code == 200
    assert first.json()["message"].startswith("Appointment approved by Customer Service")
    assert first.json()["data"]["cs_approved_by"] == cs_user.id
    assert _status(supabase, aid) == "cs_approved"

    second = client.post("/api/book-tour/approve", json={"appointment_id": aid, "approver_id": sales_user.id})
    assert second.status_code == 200
    assert second.json()["message"] == "Appointment fully approved by Sales Representative!"
    assert _status(supabase, aid) == "sales_approved"


def test_sales_cannot_approve_pending(client: TestClient, supabase, appointment, sales_user):
    aid = appointment["appointment_id"]
    response = client.post("/api/book-tour/approve", json={"appointment_id": aid, "approver_id": sales_user.id})

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Cannot approve appointment. Current status: pending, Your role: sales representative"
    )
    assert _status(supabase, aid) == "pending"


def test_cs_cannot_approve_twice(client: TestClient, appointment, cs_user):
    aid = appointment["appointment_id"]
    client.post("/api/book-tour/approve", json={"appointment_id": aid, "approver_id": cs_user.id})

    again = client.post("/api/book-tour/approve", json={"appointment_id": aid, "approver_id": cs_user.id})
    assert again.status_code == 400


def test_admin_walks_both_steps(client: TestClient, supabase, appointment, admin):
    aid = appointment["appointment_id"]
    client.post("/api/book-tour/approve", json={"appointment_id": aid, "approver_id": admin.id})
    client.post("/api/book-tour/approve", json={"appointment_id": aid, "approver_id": admin.id})
    assert _status(supabase, aid) == "sales_approved"


def test_homeowner_cannot_approve(client: TestClient, appointment, homeowner):
    response = client.post("/api/book-tour/approve", json={
        "appointment_id": appointment["appointment_id"],
        "approver_id": homeowner.id,
    })
    assert response.status_code == 403
    assert response.json()["message"] == "You do not have permission to approve appointments. Your role: home owner"


def test_approve_unknown_appointment(client: TestClient, cs_user):
    response = client.post("/api/book-tour/approve", json={"appointment_id": "missing", "approver_id": cs_user.id})
    assert response.status_code == 404


def test_lost_compare_and_swap_changes_nothing(supabase, appointment, cs_user):
    """Two approvers read `pending`; only the first update lands."""
    aid = appointment["appointment_id"]
    apply_tour_transition(supabase, aid, CS_APPROVAL, cs_user.id)

    with pytest.raises(StateConflict):
        apply_tour_transition(supabase, aid, CS_APPROVAL, "someone-else")

    row = supabase.rows(APPOINTMENTS)[0]
    assert row["cs_approved_by"] == cs_user.id


# -------------------------------------------------
# Rejection
# -------------------------------------------------
def test_reject_requires_reason(client: TestClient, appointment, cs_user):
    response = client.post("/api/book-tour/reject", json={
        "appointment_id": appointment["appointment_id"],
        "rejector_id": cs_user.id,
        "rejection_reason": "  ",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Rejection reason is required"


def test_reject_after_cs_approval(client: TestClient, supabase, appointment, cs_user, sales_user):
    aid = appointment["appointment_id"]
    client.post("/api/book-tour/approve", json={"appointment_id": aid, "approver_id": cs_user.id})

    response = client.post("/api/book-tour/reject", json={
        "appointment_id": aid,
        "rejector_id": sales_user.id,
        "rejection_reason": "Unit no longer available",
    })
    assert response.status_code == 200
    row = supabase.rows(APPOINTMENTS)[0]
    assert row["status"] == "rejected"
    assert row["rejection_reason"] == "Unit no longer available"


def test_reject_twice_is_conflict(client: TestClient, appointment, cs_user):
    payload = {
        "appointment_id": appointment["appointment_id"],
        "rejector_id": cs_user.id,
        "rejection_reason": "Duplicate",
    }
    assert client.post("/api/book-tour/reject", json=payload).status_code == 200
    assert client.post("/api/book-tour/reject", json=payload).status_code == 400


def test_booking_form_blanks_become_null():
    from models.appointment import TourBookingCreate

    form = TourBookingCreate.model_validate({"client_phone": "  ", "message": "", "user_id": "u-1"})
    assert form.client_phone is None
    assert form.message is None
    assert form.user_id == "u-1"
