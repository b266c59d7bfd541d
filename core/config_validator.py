# core/config_validator.py

from typing import List

from core.config import Settings
from core.logging_config import logger


def validate_required_config(settings: Settings) -> List[str]:
    """
    Settings without which every data handler answers
    "Server configuration error".
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_optional_config(settings: Settings) -> List[str]:
    warnings = []

    if not settings.SMTP_USER or not settings.SMTP_PASS:
        warnings.append("SMTP_USER / SMTP_PASS (OTP and follow-up emails will fail)")
    if not settings.RECAPTCHA_SECRET_KEY:
        warnings.append("RECAPTCHA_SECRET_KEY (inquiries carrying a token will fail verification)")

    return warnings


def validate_config_on_startup(settings: Settings) -> bool:
    """
    Log configuration problems. Unlike a hard failure, the app still boots
    so health checks can report the degraded state.
    Returns True when all required settings are present.
    """
    missing_required = validate_required_config(settings)

    for warning in validate_optional_config(settings):
        logger.warning(f"Optional configuration missing: {warning}")

    if missing_required:
        logger.error(f"Missing required environment variables: {', '.join(missing_required)}")
        return False

    logger.info("Configuration validation passed")
    return True
