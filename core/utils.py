# core/utils.py

import secrets
import string
from datetime import datetime, timezone
from typing import Optional


def normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    return email.strip().lower()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso_now() -> str:
    return utcnow().isoformat()


def parse_datetime(value) -> Optional[datetime]:
    """Parse an ISO timestamp or date string from the database (tz-aware, UTC default)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).replace("Z", "+00:00")
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


_ALNUM = string.ascii_uppercase + string.digits


def random_code(length: int = 8) -> str:
    """Uppercase alphanumeric code, e.g. the suffix of a tracking number."""
    return "".join(secrets.choice(_ALNUM) for _ in range(length))


def money(value) -> float:
    """Round to cents."""
    return round(float(value or 0), 2)
