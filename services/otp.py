# services/otp.py

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from supabase import Client

from core.email_utils import SMTPMailer, send_otp_email
from core.errors import APIError, UpstreamError, ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.utils import normalize_email, parse_datetime

OTP_TABLE = "otp_verifications"
OTP_TTL_MINUTES = 5

ALREADY_USED = "This OTP has already been used"
EXPIRED = "This OTP has expired. Please request a new one."
INVALID = "Invalid OTP code. Please check and try again."


def generate_code() -> str:
    """Six digits, never a leading zero."""
    return str(secrets.randbelow(900000) + 100000)


def issue_otp(
    client: Client,
    mailer: SMTPMailer,
    email: Optional[str],
    purpose: str = "inquiry verification",
    ttl_minutes: int = OTP_TTL_MINUTES,
    now: Optional[datetime] = None,
) -> dict:
    """
    Replace any live code for the email with a fresh one and mail it.
    The stored row is removed again when the mail relay fails.
    """
    if not email or not email.strip():
        raise ValidationFailed("Email is required", "Missing email")

    email = normalize_email(email)
    now = now or datetime.now(timezone.utc)
    code = generate_code()

    try:
        client.table(OTP_TABLE).delete().eq("email", email).execute()
        rows = (
            client.table(OTP_TABLE)
            .insert({
                "email": email,
                "otp_code": code,
                "purpose": purpose,
                "expires_at": (now + timedelta(minutes=ttl_minutes)).isoformat(),
                "verified": False,
            })
            .execute()
        ).data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to create OTP", status_code=400)

    if not rows:
        raise UpstreamError("Failed to create OTP", "Insert returned no data")

    record = rows[0]

    try:
        send_otp_email(mailer, email, code, purpose, ttl_minutes)
    except Exception as e:
        logger.error(f"OTP email to {email} failed: {e}")
        client.table(OTP_TABLE).delete().eq("otp_id", record.get("otp_id")).execute()
        raise UpstreamError(
            "Failed to send OTP email. Please check your email configuration.",
            str(e),
        )

    logger.info(f"OTP issued for {email} ({purpose})")
    return record


def verify_otp(
    client: Client,
    email: Optional[str],
    otp_code: Optional[str],
    now: Optional[datetime] = None,
) -> str:
    """Consume a live code. Returns the verified (lowercased) email."""
    if not email or not otp_code:
        raise ValidationFailed("Email and OTP code are required", "Missing required fields")

    email = normalize_email(email)
    code = str(otp_code).strip()
    now = now or datetime.now(timezone.utc)

    rows = (
        client.table(OTP_TABLE)
        .select("*")
        .eq("email", email)
        .eq("otp_code", code)
        .eq("verified", False)
        .gt("expires_at", now.isoformat())
        .limit(1)
        .execute()
    ).data

    if not rows:
        raise APIError(400, _failure_reason(client, email, code, now), "OTP verification failed")

    record = rows[0]

    # The delete is the consume step: only one caller gets the row back
    try:
        consumed = (
            client.table(OTP_TABLE)
            .delete()
            .eq("otp_id", record.get("otp_id"))
            .eq("verified", False)
            .gt("expires_at", now.isoformat())
            .execute()
        ).data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to consume OTP")

    if not consumed:
        raise APIError(400, INVALID, "OTP verification failed")

    logger.info(f"OTP verified for {email}")
    return record.get("email")


def _failure_reason(client: Client, email: str, code: str, now: datetime) -> str:
    history = (
        client.table(OTP_TABLE)
        .select("*")
        .eq("email", email)
        .execute()
    ).data or []

    match = next((r for r in history if str(r.get("otp_code")) == code), None)
    if match is None:
        return INVALID

    if match.get("verified"):
        return ALREADY_USED

    expires_at = parse_datetime(match.get("expires_at"))
    if expires_at is not None and expires_at < now:
        return EXPIRED

    return INVALID
