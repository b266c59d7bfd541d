# routers/property_reservation.py

import json
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError
from supabase import Client

from core.config import settings
from core.errors import ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.notifications import build_notification, create_notification
from core.side_effects import non_critical
from core.storage import ID_DOCUMENT_MAX_BYTES, ID_DOCUMENT_TYPES, generated_filename, upload_bytes, validate_file
from core.utils import normalize_email, random_code
from dependencies.clients import get_supabase
from models.enums import ReservationStatus
from models.reservation import (
    ReservationApproval,
    ReservationCreate,
    ReservationRejection,
    ReservationRevert,
    ReservationStatusUpdate,
)
from services.approvals import RESERVATIONS, approve_reservation, reject_reservation, revert_reservation
from services.contracts import contract_for_reservation, latest_transfer, schedules_for

router = APIRouter(
    prefix="/api/property-reservation",
    tags=["Property Reservations"],
)

ID_FOLDER = "reservation-ids"

REQUIRED_FIELDS = (
    "property_id",
    "user_id",
    "client_phone",
    "client_address",
    "occupation",
    "employer",
    "employment_status",
    "years_employed",
    "monthly_income",
)


def _missing(value) -> bool:
    # 0 is a legitimate value for years_employed
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_reservation(raw: str) -> ReservationCreate:
    try:
        return ReservationCreate(**json.loads(raw))
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"Malformed reservation_data: {e}")
        raise ValidationFailed("Invalid reservation data", "Invalid reservation data")


# -----------------------------------------------------
# POST /api/property-reservation (multipart)
# -----------------------------------------------------
@router.post("", summary="Submit a property reservation")
async def create_reservation(
    reservation_data: str = Form(...),
    id_file: Optional[UploadFile] = File(None),
    id_type: Optional[str] = Form(None),
    client: Client = Depends(get_supabase),
):
    payload = _parse_reservation(reservation_data)
    fields = payload.model_dump()

    if any(_missing(fields.get(k)) for k in REQUIRED_FIELDS):
        raise ValidationFailed("Please fill in all required fields to submit your reservation")

    if float(payload.monthly_income) <= 0:
        raise ValidationFailed("Monthly income must be greater than zero", "Invalid monthly income")

    if float(payload.years_employed) < 0:
        raise ValidationFailed("Years employed cannot be negative", "Invalid years employed")

    id_upload_url = None
    if id_file is not None and id_file.filename:
        content = await id_file.read()
        validate_file(id_file.content_type, len(content), ID_DOCUMENT_TYPES, ID_DOCUMENT_MAX_BYTES)
        stored = upload_bytes(
            client,
            settings.STORAGE_BUCKET,
            ID_FOLDER,
            generated_filename("id", id_file.filename),
            content,
            id_file.content_type,
        )
        id_upload_url = stored.public_url

    tracking_number = f"TRK-{random_code(8)}"

    row = {
        **fields,
        "client_email": normalize_email(payload.client_email),
        "total_monthly_income": payload.total_monthly_income or (
            float(payload.monthly_income) + float(payload.other_income_amount or 0)
        ),
        "id_type": id_type,
        "id_upload_url": id_upload_url,
        "tracking_number": tracking_number,
        "status": ReservationStatus.pending.value,
    }

    try:
        reservation = client.table(RESERVATIONS).insert(row).execute().data[0]
    except Exception as e:
        raise handle_supabase_error(e, "Failed to submit reservation", status_code=400)

    logger.info(f"Reservation {tracking_number} submitted for property {payload.property_id}")

    non_critical(
        "reservation_submitted_notification",
        create_notification,
        client,
        build_notification("RESERVATION_SUBMITTED", {
            "reservationId": reservation.get("reservation_id"),
            "trackingNumber": tracking_number,
            "clientName": payload.client_name,
            "clientEmail": payload.client_email,
            "propertyTitle": payload.property_title,
            "propertyId": payload.property_id,
        }),
    )

    return {
        "success": True,
        "data": reservation,
        "message": "Reservation submitted successfully! Our team will review your application and contact you soon.",
    }


# -----------------------------------------------------
# GET /api/property-reservation?userId=&status=
# -----------------------------------------------------
def _enrich(client: Client, reservation: dict) -> dict:
    contract = contract_for_reservation(client, reservation["reservation_id"])
    if contract is None:
        return {**reservation, "contract": None, "payment_schedules": [], "transfer_history": None}

    return {
        **reservation,
        "contract": {
            "contract_id": contract.get("contract_id"),
            "contract_number": contract.get("contract_number"),
            "payment_plan_months": contract.get("payment_plan_months"),
            "monthly_installment": contract.get("monthly_installment"),
            "contract_status": contract.get("contract_status"),
        },
        "payment_schedules": schedules_for(client, contract["contract_id"]),
        "transfer_history": latest_transfer(client, contract["contract_id"]),
    }


@router.get("", summary="List reservations")
def list_reservations(
    userId: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    query = client.table(RESERVATIONS).select("*").order("created_at", desc=True)

    if userId:
        query = query.eq("user_id", userId)
    if status and status != "all":
        query = query.eq("status", status)

    try:
        reservations = query.execute().data or []
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch reservations", status_code=400)

    enriched = [_enrich(client, r) for r in reservations]

    return {
        "success": True,
        "data": enriched,
        "total": len(enriched),
    }


# -----------------------------------------------------
# PUT /api/property-reservation (status dispatch)
# -----------------------------------------------------
@router.put("", summary="Change reservation status")
def update_reservation_status(payload: ReservationStatusUpdate, client: Client = Depends(get_supabase)):
    if not payload.reservationId or not payload.status:
        raise ValidationFailed("Reservation ID and status are required")

    if payload.status == ReservationStatus.approved:
        result = approve_reservation(
            client, payload.reservationId, payload.actor_id, payload.notes,
            due_days=settings.RESERVATION_FEE_DUE_DAYS,
        )
    elif payload.status == ReservationStatus.rejected:
        result = reject_reservation(client, payload.reservationId, payload.actor_id, payload.notes)
    elif payload.status == ReservationStatus.pending:
        result = revert_reservation(client, payload.reservationId, payload.actor_id)
    else:
        raise ValidationFailed(
            f"Invalid status. Must be one of: {', '.join(ReservationStatus.list())}",
            "Invalid status",
        )

    return {
        "success": True,
        "data": result["reservation"],
        "message": f"Reservation {payload.status} successfully",
        "side_effects": result["side_effects"],
    }


# -----------------------------------------------------
# POST /api/property-reservation/approve
# -----------------------------------------------------
@router.post("/approve", summary="Approve a reservation")
def approve(payload: ReservationApproval, client: Client = Depends(get_supabase)):
    result = approve_reservation(
        client, payload.reservation_id, payload.approved_by, payload.notes,
        due_days=settings.RESERVATION_FEE_DUE_DAYS,
    )
    return {
        "success": True,
        "data": {"reservation": result["reservation"], "transaction": result["transaction"]},
        "message": "Reservation approved successfully",
        "side_effects": result["side_effects"],
    }


# -----------------------------------------------------
# POST /api/property-reservation/reject
# -----------------------------------------------------
@router.post("/reject", summary="Reject a reservation")
def reject(payload: ReservationRejection, client: Client = Depends(get_supabase)):
    result = reject_reservation(client, payload.reservation_id, payload.rejected_by, payload.reason)
    return {
        "success": True,
        "data": result["reservation"],
        "message": "Reservation rejected successfully",
        "side_effects": result["side_effects"],
    }


# -----------------------------------------------------
# POST /api/property-reservation/revert
# -----------------------------------------------------
@router.post("/revert", summary="Revert a reservation to pending")
def revert(payload: ReservationRevert, client: Client = Depends(get_supabase)):
    result = revert_reservation(client, payload.reservation_id, payload.reverted_by)
    return {
        "success": True,
        "data": result["reservation"],
        "message": "Reservation reverted to pending successfully",
        "side_effects": result["side_effects"],
    }
