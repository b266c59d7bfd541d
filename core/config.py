from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Futura Homes Back Office API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Frontend domains (CORS + redirects)
    # -------------------------------------------------
    FRONTEND_ORIGINS: List[str] = [
        "http://localhost:3000",
        "https://futurahomes.com",
        "https://www.futurahomes.com",
    ]

    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (auth, tables, storage)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    STORAGE_BUCKET: str = Field("futura", description="Bucket for ID documents and announcement images")

    # -------------------------------------------------
    # SMTP relay (OTP + follow-up emails)
    # -------------------------------------------------
    SMTP_HOST: Optional[str] = "smtp.gmail.com"
    SMTP_PORT: Optional[int] = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    EMAIL_FROM_NAME: str = "Futura Homes"

    # -------------------------------------------------
    # Google reCAPTCHA v3
    # -------------------------------------------------
    RECAPTCHA_SECRET_KEY: Optional[str] = None
    RECAPTCHA_VERIFY_URL: str = "https://www.google.com/recaptcha/api/siteverify"
    RECAPTCHA_MIN_SCORE: float = Field(0.5, description="Minimum acceptable score (0.0 bot .. 1.0 human)")
    RECAPTCHA_EXPECTED_ACTION: str = "inquiry_submit"

    # -------------------------------------------------
    # Workflow knobs
    # -------------------------------------------------
    OTP_TTL_MINUTES: int = Field(5, description="Lifetime of an emailed one-time passcode")
    RESERVATION_FEE_DUE_DAYS: int = Field(7, description="Days until an approved reservation fee is due")
    INQUIRY_RATE_LIMIT: int = Field(5, description="Inquiries allowed per email per hour")
    INQUIRY_ROLE_ID: Optional[str] = Field(None, description="role_id stamped on new inquiries")

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list after loading settings
# -------------------------------------------------
settings.BACKEND_CORS_ORIGINS = sorted({o.rstrip("/") for o in settings.FRONTEND_ORIGINS})
