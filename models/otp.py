# models/otp.py

from typing import Optional
from pydantic import BaseModel


class OTPRequest(BaseModel):
    email: Optional[str] = None
    purpose: str = "inquiry verification"


class OTPVerify(BaseModel):
    email: Optional[str] = None
    otp_code: Optional[str] = None
