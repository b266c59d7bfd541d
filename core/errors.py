# core/errors.py

from typing import Any, Optional

from fastapi import HTTPException


# ============================================================
# Envelope-aware API errors
# ============================================================
class APIError(HTTPException):
    """
    HTTPException that knows how to render itself as the
    `{success, message, error}` envelope.

    `message` is the human-readable sentence shown in the UI,
    `error` a short machine-ish summary (optional).
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        error: Optional[str] = None,
        extra: Optional[dict] = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.error = error
        self.extra = extra or {}

    def to_envelope(self) -> dict:
        body: dict[str, Any] = {"success": False, "message": self.message}
        if self.error:
            body["error"] = self.error
        body.update(self.extra)
        return body


class ValidationFailed(APIError):
    def __init__(self, message: str, error: Optional[str] = "Missing required fields", **extra):
        super().__init__(400, message, error, extra)


class Forbidden(APIError):
    def __init__(self, message: str, error: Optional[str] = "Forbidden", **extra):
        super().__init__(403, message, error, extra)


class NotFound(APIError):
    def __init__(self, message: str, error: Optional[str] = "Not found", **extra):
        super().__init__(404, message, error, extra)


class StateConflict(APIError):
    """Target row is not in the status the action expects."""

    def __init__(self, message: str, error: Optional[str] = "Invalid status", **extra):
        super().__init__(400, message, error, extra)


class Conflict(APIError):
    def __init__(self, message: str, error: Optional[str] = "Conflict", **extra):
        super().__init__(409, message, error, extra)


class UpstreamError(APIError):
    """
    The data platform or mail relay reported a failure.
    400 when the caller's input caused it, 500 otherwise.
    """

    def __init__(self, message: str, error: Optional[str] = None, status_code: int = 500, **extra):
        super().__init__(status_code, message, error, extra)


def server_not_configured() -> APIError:
    return APIError(500, "Server configuration error", "Server configuration error")


# ============================================================
# Supabase client exceptions → readable text
# ============================================================
def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / GoTrue / PostgREST errors
    if hasattr(error, "message"):
        try:
            if error.message:
                return str(error.message)
        except Exception:
            pass

    # Case 2: errors with args (common)
    if hasattr(error, "args") and error.args:
        try:
            return str(error.args[0])
        except Exception:
            pass

    # Case 3: Plain string fallback
    try:
        return str(error)
    except Exception:
        return "Unknown Supabase error"


def handle_supabase_error(error: Exception, operation: str = "Database operation", status_code: int = 500) -> APIError:
    """
    Handle Supabase errors with consistent formatting.
    Returns the APIError (doesn't raise) so caller can customize or re-raise.
    """
    from core.logging_config import logger

    error_detail = extract_supabase_error(error)
    logger.error(f"{operation}: {error_detail}")

    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower:
        return APIError(400, f"{operation}: Record already exists", error_detail)
    elif "foreign key" in error_lower:
        return APIError(400, f"{operation}: Invalid reference", error_detail)
    elif "not found" in error_lower or "does not exist" in error_lower:
        return APIError(404, f"{operation}: Resource not found", error_detail)
    else:
        return APIError(status_code, f"{operation}: {error_detail}", error_detail)
