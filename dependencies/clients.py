# dependencies/clients.py

from fastapi import Request
from supabase import Client

from core.email_utils import SMTPMailer
from core.errors import server_not_configured
from core.logging_config import logger
from core.recaptcha import RecaptchaVerifier


# ============================================================
# Startup-built collaborators, injected per request
# ============================================================
def get_supabase(request: Request) -> Client:
    client = getattr(request.app.state, "supabase", None)
    if client is None:
        logger.error("Supabase client not configured")
        raise server_not_configured()
    return client


def get_mailer(request: Request) -> SMTPMailer:
    mailer = getattr(request.app.state, "mailer", None)
    if mailer is None:
        raise server_not_configured()
    return mailer


def get_recaptcha(request: Request) -> RecaptchaVerifier:
    verifier = getattr(request.app.state, "recaptcha", None)
    if verifier is None:
        raise server_not_configured()
    return verifier
