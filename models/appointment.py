# models/appointment.py

from typing import Optional
from pydantic import BaseModel, field_validator


# -------------------------------------------------
# Create (public tour booking form)
# -------------------------------------------------
class TourBookingCreate(BaseModel):
    property_id: Optional[str] = None
    property_title: Optional[str] = None
    user_id: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None
    message: Optional[str] = None

    # Blank optional strings are stored as NULL
    @field_validator("client_phone", "message", "property_title", "user_id", mode="before")
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# -------------------------------------------------
# Staff actions
# -------------------------------------------------
class TourApproval(BaseModel):
    appointment_id: Optional[str] = None
    approver_id: Optional[str] = None
    approval_notes: Optional[str] = None


class TourRejection(BaseModel):
    appointment_id: Optional[str] = None
    rejector_id: Optional[str] = None
    rejection_reason: Optional[str] = None
