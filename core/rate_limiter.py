# core/rate_limiter.py

import math
import time
from collections import defaultdict
from typing import Dict, List, Tuple

from core.errors import APIError


# Per-process sliding window. Counts reset on restart and are not shared
# between workers.
_rate_limit_store: Dict[str, List[float]] = defaultdict(list)


def check_rate_limit(
    identifier: str,
    max_requests: int = 5,
    window_seconds: int = 3600,
) -> Tuple[bool, int, int]:
    """
    Record one attempt for `identifier` if the window allows it.

    Returns:
        (allowed, remaining, reset_minutes). reset_minutes is how long until
        the oldest attempt leaves the window, 0 when allowed.
    """
    now = time.time()
    window_start = now - window_seconds

    requests = [ts for ts in _rate_limit_store[identifier] if ts > window_start]

    if len(requests) >= max_requests:
        _rate_limit_store[identifier] = requests
        reset_minutes = math.ceil((requests[0] + window_seconds - now) / 60)
        return False, 0, reset_minutes

    requests.append(now)
    _rate_limit_store[identifier] = requests
    return True, max_requests - len(requests), 0


def require_email_rate_limit(email: str, max_requests: int = 5, window_seconds: int = 3600) -> int:
    """
    Per-email limiter for public forms.
    Raises 429 with the minutes until the caller may retry.
    """
    key = f"email:{email.strip().lower()}"
    allowed, remaining, reset_minutes = check_rate_limit(key, max_requests, window_seconds)

    if not allowed:
        raise APIError(
            429,
            f"Too many inquiries. Please try again in {reset_minutes} minutes.",
            "Rate limit exceeded",
        )

    return remaining


def reset_rate_limits():
    _rate_limit_store.clear()
