# models/inquiry.py

from typing import Optional
from pydantic import BaseModel


class InquiryCreate(BaseModel):
    property_id: Optional[str] = None
    property_title: Optional[str] = None
    user_id: Optional[str] = None
    client_firstname: Optional[str] = None
    client_lastname: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    message: Optional[str] = None
    is_authenticated: bool = False
    recaptcha_token: Optional[str] = None


class InquiryStatusUpdate(BaseModel):
    inquiryId: Optional[str] = None
    status: Optional[str] = None


class FollowUpEmail(BaseModel):
    clientEmail: Optional[str] = None
    clientName: Optional[str] = None
    propertyTitle: Optional[str] = None
    message: Optional[str] = None
    inquiryId: Optional[str] = None
