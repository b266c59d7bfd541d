# routers/book_tour.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from core.errors import ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.notifications import build_notification, create_notification
from core.side_effects import non_critical
from core.utils import normalize_email
from dependencies.clients import get_supabase
from models.appointment import TourApproval, TourBookingCreate, TourRejection
from models.enums import AppointmentStatus
from services.approvals import APPOINTMENTS, approve_tour, reject_tour

router = APIRouter(
    prefix="/api/book-tour",
    tags=["Tour Bookings"],
)


# -----------------------------------------------------
# POST /api/book-tour
# -----------------------------------------------------
@router.post("", summary="Book a property tour")
def create_booking(payload: TourBookingCreate, client: Client = Depends(get_supabase)):
    if not all([
        payload.property_id,
        payload.client_name,
        payload.client_email,
        payload.appointment_date,
        payload.appointment_time,
    ]):
        raise ValidationFailed("Property, client details, date and time are required")

    row = {
        "property_id": payload.property_id,
        "property_title": payload.property_title,
        "user_id": payload.user_id,
        "client_name": payload.client_name.strip(),
        "client_email": normalize_email(payload.client_email),
        "client_phone": payload.client_phone.strip() if payload.client_phone else None,
        "appointment_date": payload.appointment_date,
        "appointment_time": payload.appointment_time,
        "message": payload.message.strip() if payload.message else None,
        "status": AppointmentStatus.pending.value,
    }

    try:
        appointment = client.table(APPOINTMENTS).insert(row).execute().data[0]
    except Exception as e:
        raise handle_supabase_error(e, "Failed to create appointment", status_code=400)

    logger.info(f"Appointment created: {appointment.get('appointment_id')}")

    non_critical(
        "tour_booked_notification",
        create_notification,
        client,
        build_notification("TOUR_BOOKED", {
            "appointmentId": appointment.get("appointment_id"),
            "clientName": payload.client_name,
            "clientEmail": payload.client_email,
            "clientPhone": payload.client_phone,
            "propertyTitle": payload.property_title,
            "propertyId": payload.property_id,
            "tourDate": payload.appointment_date,
            "tourTime": payload.appointment_time,
        }),
    )

    return {
        "success": True,
        "data": appointment,
        "message": "Tour booking created successfully! Awaiting approval from our team.",
    }


# -----------------------------------------------------
# GET /api/book-tour?userId=&clientEmail=
# -----------------------------------------------------
@router.get("", summary="List tour bookings")
def list_bookings(
    userId: Optional[str] = Query(None),
    clientEmail: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    query = client.table(APPOINTMENTS).select("*").order("created_at", desc=True)

    if userId:
        query = query.eq("user_id", userId)
    elif clientEmail:
        query = query.eq("client_email", normalize_email(clientEmail))

    try:
        appointments = query.execute().data or []
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch appointments", status_code=400)

    return {
        "success": True,
        "data": appointments,
        "total": len(appointments),
        "message": f"Found {len(appointments)} appointments",
    }


# -----------------------------------------------------
# POST /api/book-tour/approve
# -----------------------------------------------------
@router.post("/approve", summary="Approve a tour (customer service, then sales)")
def approve_booking(payload: TourApproval, client: Client = Depends(get_supabase)):
    result = approve_tour(client, payload.appointment_id, payload.approver_id, payload.approval_notes)
    return {
        "success": True,
        "data": result["appointment"],
        "message": result["message"],
        "side_effects": [result["notification"]],
    }


# -----------------------------------------------------
# POST /api/book-tour/reject
# -----------------------------------------------------
@router.post("/reject", summary="Reject a tour")
def reject_booking(payload: TourRejection, client: Client = Depends(get_supabase)):
    result = reject_tour(client, payload.appointment_id, payload.rejector_id, payload.rejection_reason)
    return {
        "success": True,
        "data": result["appointment"],
        "message": "Appointment has been rejected",
        "side_effects": [result["notification"]],
    }
