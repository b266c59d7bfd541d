# tests/test_otp.py

"""
Tests for emailed one-time passcodes.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from services.otp import ALREADY_USED, EXPIRED, INVALID, OTP_TABLE, generate_code


def _seed_code(supabase, code="123456", minutes=5, verified=False, email="buyer@example.com"):
    expires = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return supabase.seed(OTP_TABLE, {
        "email": email,
        "otp_code": code,
        "purpose": "inquiry verification",
        "expires_at": expires.isoformat(),
        "verified": verified,
    })[0]


def test_generated_codes_are_six_digits():
    for _ in range(50):
        code = generate_code()
        assert len(code) == 6 and code.isdigit() and code[0] != "0"


# -------------------------------------------------
# Issue
# -------------------------------------------------
def test_send_otp_stores_and_mails_code(client: TestClient, supabase, mailer):
    response = client.post("/api/send-otp", json={"email": " Buyer@Example.com "})
    assert response.status_code == 200

    body = response.json()
    assert body["message"] == "OTP sent successfully to your email"

    rows = supabase.rows(OTP_TABLE)
    assert len(rows) == 1
    assert rows[0]["email"] == "buyer@example.com"
    assert rows[0]["otp_id"] == body["otp_id"]

    mailer.send.assert_called_once()
    kwargs = mailer.send.call_args.kwargs
    assert kwargs["recipients"] == ["buyer@example.com"]
    assert rows[0]["otp_code"] in kwargs["body"]


def test_new_code_replaces_old(client: TestClient, supabase):
    client.post("/api/send-otp", json={"email": "buyer@example.com"})
    client.post("/api/send-otp", json={"email": "buyer@example.com"})
    assert len(supabase.rows(OTP_TABLE)) == 1


def test_mail_failure_discards_code(client: TestClient, supabase, mailer):
    mailer.send.side_effect = OSError("relay refused")

    response = client.post("/api/send-otp", json={"email": "buyer@example.com"})

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to send OTP email. Please check your email configuration."
    assert supabase.rows(OTP_TABLE) == []


def test_send_otp_requires_email(client: TestClient, mailer):
    response = client.post("/api/send-otp", json={"email": "  "})
    assert response.status_code == 400
    mailer.send.assert_not_called()


# -------------------------------------------------
# Verify
# -------------------------------------------------
def test_verify_consumes_code(client: TestClient, supabase):
    _seed_code(supabase)

    response = client.post("/api/verify-otp", json={"email": "BUYER@example.com", "otp_code": "123456"})

    assert response.status_code == 200
    assert response.json()["email"] == "buyer@example.com"
    assert supabase.rows(OTP_TABLE) == []


@pytest.mark.parametrize("seed, expected", [
    ({"code": "654321"}, INVALID),
    ({"minutes": -1}, EXPIRED),
    ({"verified": True}, ALREADY_USED),
])
def test_verify_failure_reasons(client: TestClient, supabase, seed, expected):
    _seed_code(supabase, **seed)

    response = client.post("/api/verify-otp", json={"email": "buyer@example.com", "otp_code": "123456"})

    assert response.status_code == 400
    assert response.json()["message"] == expected


def test_verify_requires_both_fields(client: TestClient):
    response = client.post("/api/verify-otp", json={"email": "buyer@example.com"})
    assert response.status_code == 400
    assert response.json()["message"] == "Email and OTP code are required"


def test_code_verifies_only_once(client: TestClient, supabase):
    _seed_code(supabase)
    payload = {"email": "buyer@example.com", "otp_code": "123456"}

    assert client.post("/api/verify-otp", json=payload).status_code == 200

    second = client.post("/api/verify-otp", json=payload)
    assert second.status_code == 400
    assert second.json()["message"] == INVALID


def test_verify_fails_when_code_cannot_be_consumed(client: TestClient, supabase):
    _seed_code(supabase)
    supabase.fail_on(OTP_TABLE, "delete")

    response = client.post("/api/verify-otp", json={"email": "buyer@example.com", "otp_code": "123456"})

    assert response.status_code == 500
    assert len(supabase.rows(OTP_TABLE)) == 1


def test_verify_loses_race_for_consumed_code(supabase, monkeypatch):
    from services import otp as otp_service

    _seed_code(supabase)
    real_table = supabase.table

    def table(name):
        query = real_table(name)
        real_delete = query.delete

        def delete():
            # Another request consumed the row between our read and delete
            supabase.tables[OTP_TABLE] = []
            return real_delete()

        query.delete = delete
        return query

    monkeypatch.setattr(supabase, "table", table)

    with pytest.raises(otp_service.APIError) as exc:
        otp_service.verify_otp(supabase, "buyer@example.com", "123456")
    assert exc.value.message == INVALID
