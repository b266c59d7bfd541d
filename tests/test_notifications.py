# tests/test_notifications.py

"""
Tests for the notification feed and fan-out helpers.
"""

import pytest
from fastapi.testclient import TestClient

from core.notifications import (
    NOTIFICATIONS_TABLE,
    TEMPLATES,
    build_notification,
    create_notification,
    get_user_ids_by_role,
    notify_roles,
)
from core.roles import ADMIN, CS


@pytest.fixture
def feed(supabase):
    return supabase.seed(
        NOTIFICATIONS_TABLE,
        {"id": "n1", "title": "For admins", "recipient_role": "admin", "status": "unread",
         "priority": "normal", "created_at": "2025-01-01T00:00:00+00:00"},
        {"id": "n2", "title": "For everyone", "recipient_role": "all", "status": "read",
         "priority": "high", "created_at": "2025-01-02T00:00:00+00:00"},
        {"id": "n3", "title": "For one user", "recipient_role": None, "recipient_id": "user-1",
         "status": "unread", "priority": "normal", "created_at": "2025-01-03T00:00:00+00:00"},
        {"id": "n4", "title": "Archived", "recipient_role": "admin", "status": "archived",
         "priority": "normal", "created_at": "2025-01-04T00:00:00+00:00"},
    )


# -------------------------------------------------
# Fan-out
# -------------------------------------------------
def test_every_template_renders():
    for event in TEMPLATES:
        notification = build_notification(event, {"title": "x", "message": "y"})
        assert notification["title"]
        assert notification["type"]


def test_role_only_notification(supabase):
    result = create_notification(supabase, build_notification("USER_REGISTERED", {"fullName": "Ana", "email": "a@x"}))

    assert result.ok
    row = supabase.rows(NOTIFICATIONS_TABLE)[0]
    assert row["recipient_id"] is None
    assert row["recipient_role"] == "admin"
    assert row["status"] == "unread"
    assert "created_at" in row["data"]


def test_one_row_per_recipient(supabase):
    create_notification(supabase, build_notification("SYSTEM_EVENT", {"title": "t", "message": "m"}),
                        recipient_ids=["a", "b", "c"])
    assert [r["recipient_id"] for r in supabase.rows(NOTIFICATIONS_TABLE)] == ["a", "b", "c"]


def test_insert_failure_is_reported_not_raised(supabase):
    supabase.fail_on(NOTIFICATIONS_TABLE, "insert")
    result = create_notification(supabase, build_notification("SYSTEM_EVENT", {"title": "t", "message": "m"}))
    assert result.ok is False
    assert result.error == "connection reset by peer"


def test_user_ids_by_role_is_case_insensitive(supabase, admin, cs_user, homeowner):
    assert get_user_ids_by_role(supabase, "CUSTOMER SERVICE") == [cs_user.id]
    assert get_user_ids_by_role(supabase, "nobody") == []


def test_notify_roles(supabase, admin, cs_user, sales_user):
    notify_roles(supabase, build_notification("SYSTEM_EVENT", {"title": "t", "message": "m"}), [ADMIN, CS])
    assert {r["recipient_id"] for r in supabase.rows(NOTIFICATIONS_TABLE)} == {admin.id, cs_user.id}


# -------------------------------------------------
# GET /api/notifications
# -------------------------------------------------
def test_feed_for_role_excludes_archived(client: TestClient, feed):
    body = client.get("/api/notifications", params={"role": "admin"}).json()

    assert [n["id"] for n in body["data"]] == ["n2", "n1"]
    assert body["count"] == 2
    assert body["unreadCount"] == 1


def test_feed_for_user_and_role(client: TestClient, feed):
    body = client.get("/api/notifications", params={"role": "admin", "userId": "user-1"}).json()
    assert [n["id"] for n in body["data"]] == ["n3", "n2", "n1"]


def test_feed_for_user_only(client: TestClient, feed):
    body = client.get("/api/notifications", params={"userId": "user-1"}).json()
    assert [n["id"] for n in body["data"]] == ["n3"]


def test_feed_limit_and_priority(client: TestClient, feed):
    body = client.get("/api/notifications", params={"limit": 1}).json()
    assert [n["id"] for n in body["data"]] == ["n3"]

    high = client.get("/api/notifications", params={"priority": "high"}).json()
    assert [n["id"] for n in high["data"]] == ["n2"]


# -------------------------------------------------
# Writes
# -------------------------------------------------
def test_create_notification_endpoint(client: TestClient, supabase):
    response = client.post("/api/notifications", json={"title": "Maintenance", "message": "Water interruption"})
    assert response.status_code == 201
    assert supabase.rows(NOTIFICATIONS_TABLE)[0]["title"] == "Maintenance"


def test_create_requires_title_and_message(client: TestClient):
    response = client.post("/api/notifications", json={"title": "Only a title"})
    assert response.status_code == 400
    assert response.json()["message"] == "Title and message are required"


def test_mark_read_stamps_read_at(client: TestClient, supabase, feed):
    response = client.put("/api/notifications", json={"id": "n1", "status": "read"})

    assert response.status_code == 200
    row = next(r for r in supabase.rows(NOTIFICATIONS_TABLE) if r["id"] == "n1")
    assert row["status"] == "read"
    assert row["read_at"]


def test_mark_with_invalid_status(client: TestClient, feed):
    response = client.put("/api/notifications", json={"id": "n1", "status": "deleted"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid status. Must be one of: unread, read, archived"


def test_update_unknown_notification(client: TestClient):
    assert client.put("/api/notifications", json={"id": "nope", "status": "read"}).status_code == 404


def test_delete_one_and_clear_all(client: TestClient, supabase, feed):
    client.delete("/api/notifications", params={"id": "n1"})
    assert len(supabase.rows(NOTIFICATIONS_TABLE)) == 3

    response = client.delete("/api/notifications", params={"clearAll": "true"})
    assert response.json()["message"] == "All notifications cleared successfully"
    assert supabase.rows(NOTIFICATIONS_TABLE) == []


def test_delete_requires_id(client: TestClient):
    assert client.delete("/api/notifications").status_code == 400
