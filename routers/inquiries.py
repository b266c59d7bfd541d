# routers/inquiries.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from supabase import Client

from core.config import settings
from core.email_utils import SMTPMailer, send_follow_up_email
from core.errors import APIError, Conflict, NotFound, UpstreamError, ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.notifications import build_notification, create_notification
from core.rate_limiter import require_email_rate_limit
from core.recaptcha import RecaptchaNotConfigured, RecaptchaVerifier
from core.side_effects import non_critical
from core.utils import iso_now, normalize_email
from dependencies.clients import get_mailer, get_recaptcha, get_supabase
from models.enums import InquiryStatus
from models.inquiry import FollowUpEmail, InquiryCreate, InquiryStatusUpdate

router = APIRouter(
    prefix="/api",
    tags=["Inquiries"],
)

INQUIRIES = "client_inquiries"
DUPLICATE_WINDOW = timedelta(hours=24)


def _list_query(client: Client, userId: Optional[str], clientEmail: Optional[str], **select_kwargs):
    query = client.table(INQUIRIES).select("*", **select_kwargs).order("created_at", desc=True)
    if userId:
        query = query.eq("user_id", userId)
    if clientEmail:
        query = query.eq("client_email", normalize_email(clientEmail))
    return query


# -----------------------------------------------------
# POST /api/send-inquiry
# -----------------------------------------------------
@router.post("/send-inquiry", summary="Submit a property inquiry")
def send_inquiry(
    payload: InquiryCreate,
    request: Request,
    client: Client = Depends(get_supabase),
    recaptcha: RecaptchaVerifier = Depends(get_recaptcha),
):
    if not all([
        payload.property_id,
        payload.client_firstname,
        payload.client_lastname,
        payload.client_email,
        payload.message,
    ]):
        raise ValidationFailed("Property, client details, and message are required")

    if payload.recaptcha_token:
        remote_ip = request.client.host if request.client else None
        try:
            result = recaptcha.validate(payload.recaptcha_token, remote_ip)
        except RecaptchaNotConfigured as e:
            raise APIError(500, str(e), "Server configuration error")

        if not result.valid:
            logger.warning(f"reCAPTCHA rejected inquiry from {payload.client_email}: {result.message}")
            raise APIError(403, result.message, "Security verification failed", {"score": result.score})
    else:
        logger.warning("No reCAPTCHA token provided - proceeding without verification")

    email = normalize_email(payload.client_email)
    remaining = require_email_rate_limit(email, settings.INQUIRY_RATE_LIMIT)
    logger.info(f"Inquiry rate limit for {email}: {remaining} remaining")

    since = (datetime.now(timezone.utc) - DUPLICATE_WINDOW).isoformat()
    existing = (
        client.table(INQUIRIES)
        .select("inquiry_id")
        .eq("client_email", email)
        .eq("property_id", payload.property_id)
        .gte("created_at", since)
        .execute()
    ).data
    if existing:
        raise Conflict(
            "You have already submitted an inquiry for this property recently. Our team will contact you soon.",
            "Duplicate inquiry",
        )

    row = {
        "property_id": payload.property_id,
        "property_title": payload.property_title or None,
        "user_id": payload.user_id or None,
        "role_id": settings.INQUIRY_ROLE_ID,
        "client_firstname": payload.client_firstname.strip(),
        "client_lastname": payload.client_lastname.strip(),
        "client_email": email,
        "client_phone": payload.client_phone.strip() if payload.client_phone else None,
        "message": payload.message.strip(),
        "is_authenticated": payload.is_authenticated,
        "status": InquiryStatus.pending.value,
    }

    try:
        inquiry = client.table(INQUIRIES).insert(row).execute().data[0]
    except Exception as e:
        raise handle_supabase_error(e, "Failed to create inquiry", status_code=400)

    logger.info(f"Inquiry created: {inquiry.get('inquiry_id')}")

    full_name = f"{row['client_firstname']} {row['client_lastname']}"
    non_critical(
        "inquiry_received_notification",
        create_notification,
        client,
        build_notification("INQUIRY_RECEIVED", {
            "inquiryId": inquiry.get("inquiry_id"),
            "clientName": full_name,
            "clientEmail": email,
            "clientPhone": row["client_phone"],
            "propertyTitle": payload.property_title,
            "propertyId": payload.property_id,
            "message": row["message"],
        }),
    )

    return {
        "success": True,
        "data": inquiry,
        "message": "Inquiry sent successfully! Our team will contact you soon.",
    }


# -----------------------------------------------------
# GET /api/send-inquiry?userId=&clientEmail=
# -----------------------------------------------------
@router.get("/send-inquiry", summary="List a client's inquiries")
def my_inquiries(
    userId: Optional[str] = Query(None),
    clientEmail: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    try:
        inquiries = _list_query(client, userId, clientEmail).execute().data or []
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch inquiries", status_code=400)

    return {
        "success": True,
        "data": inquiries,
        "message": f"Found {len(inquiries)} inquiries",
    }


# -----------------------------------------------------
# GET /api/client-inquiries
# -----------------------------------------------------
@router.get("/client-inquiries", summary="Staff inquiry list")
def list_client_inquiries(
    roleId: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    userId: Optional[str] = Query(None),
    clientEmail: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    client: Client = Depends(get_supabase),
):
    query = _list_query(client, userId, clientEmail, count="exact")

    if roleId:
        query = query.eq("role_id", roleId)
    if status and status != "all":
        query = query.eq("status", status)

    if offset is not None:
        query = query.range(offset, offset + (limit or 10) - 1)
    elif limit:
        query = query.limit(limit)

    try:
        res = query.execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch inquiries", status_code=400)

    inquiries = res.data or []
    return {
        "success": True,
        "data": inquiries,
        "total": res.count if res.count is not None else len(inquiries),
        "message": f"Found {len(inquiries)} inquiries",
    }


# -----------------------------------------------------
# PATCH /api/client-inquiries
# -----------------------------------------------------
@router.patch("/client-inquiries", summary="Update inquiry status")
def update_inquiry_status(payload: InquiryStatusUpdate, client: Client = Depends(get_supabase)):
    if not payload.inquiryId or not payload.status:
        raise ValidationFailed("Inquiry ID and status are required")

    if payload.status not in InquiryStatus.list():
        raise ValidationFailed(
            f"Invalid status. Must be one of: {', '.join(InquiryStatus.list())}",
            "Invalid status",
        )

    try:
        rows = (
            client.table(INQUIRIES)
            .update({"status": payload.status, "updated_at": iso_now()})
            .eq("inquiry_id", payload.inquiryId)
            .execute()
        ).data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to update inquiry", status_code=400)

    if not rows:
        raise NotFound("Inquiry not found")

    logger.info(f"Inquiry {payload.inquiryId} → {payload.status}")
    return {
        "success": True,
        "data": rows[0],
        "message": "Inquiry status updated successfully",
    }


# -----------------------------------------------------
# DELETE /api/client-inquiries?inquiryId=
# -----------------------------------------------------
@router.delete("/client-inquiries", summary="Delete an inquiry")
def delete_inquiry(inquiryId: Optional[str] = Query(None), client: Client = Depends(get_supabase)):
    if not inquiryId:
        raise ValidationFailed("Inquiry ID is required", "Missing inquiry ID")

    try:
        client.table(INQUIRIES).delete().eq("inquiry_id", inquiryId).execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to delete inquiry", status_code=400)

    logger.info(f"Inquiry {inquiryId} deleted")
    return {"success": True, "message": "Inquiry deleted successfully"}


# -----------------------------------------------------
# POST /api/send-follow-up
# -----------------------------------------------------
@router.post("/send-follow-up", summary="Email a follow-up to an inquirer")
def send_follow_up(payload: FollowUpEmail, mailer: SMTPMailer = Depends(get_mailer)):
    if not payload.clientEmail or not payload.message:
        raise ValidationFailed("Email and message are required")

    try:
        send_follow_up_email(
            mailer,
            normalize_email(payload.clientEmail),
            payload.message,
            client_name=payload.clientName,
            property_title=payload.propertyTitle,
        )
    except Exception as e:
        raise UpstreamError(
            "Failed to send follow-up email. Please check your email configuration.",
            str(e),
        )

    logger.info(f"Follow-up sent to {payload.clientEmail} (inquiry {payload.inquiryId})")
    return {"success": True, "message": "Follow-up email sent successfully"}
