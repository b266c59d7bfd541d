# models/reservation.py

from typing import Optional, Union
from pydantic import BaseModel


class ReservationCreate(BaseModel):
    """
    JSON carried in the `reservation_data` multipart field.
    Presence checks happen in the handler so the error text matches
    what the client form expects.
    """

    property_id: Optional[str] = None
    property_title: Optional[str] = None
    reservation_fee: Optional[float] = 0

    user_id: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_address: Optional[str] = None

    occupation: Optional[str] = None
    employer: Optional[str] = None
    employment_status: Optional[str] = None
    years_employed: Optional[Union[int, float]] = None

    monthly_income: Optional[float] = None
    other_income_source: Optional[str] = None
    other_income_amount: Optional[float] = None
    total_monthly_income: Optional[float] = None

    message: Optional[str] = None

    model_config = {"extra": "ignore"}


class ReservationStatusUpdate(BaseModel):
    reservationId: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    actor_id: Optional[str] = None


class ReservationApproval(BaseModel):
    reservation_id: Optional[str] = None
    approved_by: Optional[str] = None
    notes: Optional[str] = None


class ReservationRejection(BaseModel):
    reservation_id: Optional[str] = None
    rejected_by: Optional[str] = None
    reason: Optional[str] = None


class ReservationRevert(BaseModel):
    reservation_id: Optional[str] = None
    reverted_by: Optional[str] = None
