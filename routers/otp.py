# routers/otp.py

from fastapi import APIRouter, Depends
from supabase import Client

from core.config import settings
from core.email_utils import SMTPMailer
from dependencies.clients import get_mailer, get_supabase
from models.otp import OTPRequest, OTPVerify
from services.otp import issue_otp, verify_otp

router = APIRouter(
    prefix="/api",
    tags=["OTP"],
)


# -----------------------------------------------------
# POST /api/send-otp
# -----------------------------------------------------
@router.post("/send-otp", summary="Email a one-time passcode")
def send_otp(
    payload: OTPRequest,
    client: Client = Depends(get_supabase),
    mailer: SMTPMailer = Depends(get_mailer),
):
    record = issue_otp(client, mailer, payload.email, payload.purpose, settings.OTP_TTL_MINUTES)
    return {
        "success": True,
        "message": "OTP sent successfully to your email",
        "otp_id": record.get("otp_id"),
    }


# -----------------------------------------------------
# POST /api/verify-otp
# -----------------------------------------------------
@router.post("/verify-otp", summary="Consume a one-time passcode")
def check_otp(payload: OTPVerify, client: Client = Depends(get_supabase)):
    email = verify_otp(client, payload.email, payload.otp_code)
    return {
        "success": True,
        "message": "OTP verified successfully",
        "email": email,
    }
