# models/complaint.py

from typing import Optional
from pydantic import BaseModel


class ComplaintCreate(BaseModel):
    subject: Optional[str] = None
    description: Optional[str] = None
    complaint_type: Optional[str] = None
    severity: str = "medium"
    user_id: Optional[str] = None


class ServiceRequestCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    request_type: Optional[str] = None
    priority: str = "medium"
    user_id: Optional[str] = None


class TicketStatusUpdate(BaseModel):
    """Status change for a complaint or a service request."""

    id: Optional[str] = None
    status: Optional[str] = None
    user_id: Optional[str] = None
