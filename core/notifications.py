# core/notifications.py

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from supabase import Client

from core.errors import extract_supabase_error
from core.logging_config import logger
from core.roles import Role
from core.side_effects import SideEffectResult
from core.supabase_client import list_auth_users

NOTIFICATIONS_TABLE = "notifications_tbl"


# -----------------------------------------------------
# 🔔 Insert notification rows
# -----------------------------------------------------
def _row(notification: dict, recipient_id: Optional[str]) -> dict:
    data = dict(notification.get("data") or {})
    data["created_at"] = datetime.now(timezone.utc).isoformat()

    return {
        "notification_type": notification.get("type"),
        "source_table": notification.get("source_table", "system"),
        "source_table_display_name": notification.get("source_table_display_name", "System"),
        "source_record_id": None,
        "title": notification.get("title"),
        "message": notification.get("message"),
        "icon": notification.get("icon", "📢"),
        "priority": notification.get("priority", "normal"),
        "status": "unread",
        "recipient_role": notification.get("recipient_role", Role.admin.value),
        "recipient_id": recipient_id,
        "data": data,
        "action_url": notification.get("action_url"),
    }


def create_notification(
    client: Client,
    notification: dict,
    recipient_id: Optional[str] = None,
    recipient_ids: Optional[List[str]] = None,
) -> SideEffectResult:
    """
    Write notification rows. Fan-out rules:
      • recipient_ids → one row per id
      • recipient_id  → a single addressed row
      • neither       → one row addressed by role only

    Never raises; the caller logs the result and moves on.
    """
    if recipient_ids:
        rows = [_row(notification, uid) for uid in recipient_ids]
    else:
        rows = [_row(notification, recipient_id)]

    try:
        result = client.table(NOTIFICATIONS_TABLE).insert(rows).execute()
    except Exception as e:
        detail = extract_supabase_error(e)
        logger.error(f"Notification error: {detail}")
        return SideEffectResult(name="notification", ok=False, error=detail)

    created = result.data or []
    logger.info(f'Notification created: "{notification.get("title")}" ({len(created)} recipient(s))')
    return SideEffectResult(name="notification", ok=True, data=created)


def get_user_ids_by_role(client: Client, role) -> List[str]:
    """Ids of auth users whose metadata role matches `role` (case-insensitive)."""
    wanted = Role.parse(role)
    if wanted is None:
        return []

    try:
        users = list_auth_users(client)
    except Exception as e:
        logger.error(f"Error fetching users: {extract_supabase_error(e)}")
        return []

    ids = [
        u.id for u in users
        if Role.parse((u.user_metadata or {}).get("role")) == wanted
    ]
    logger.info(f'Found {len(ids)} users with role "{wanted.value}"')
    return ids


def notify_roles(client: Client, notification: dict, roles: List[Role]) -> SideEffectResult:
    """Address one row to every user holding any of `roles`."""
    recipients: List[str] = []
    for role in roles:
        recipients.extend(get_user_ids_by_role(client, role))

    if not recipients:
        return SideEffectResult(name="notification", ok=True, data=[])

    return create_notification(client, notification, recipient_ids=recipients)


# -----------------------------------------------------
# Templates
# -----------------------------------------------------
def _template(
    type: str,
    title: str,
    message: str,
    icon: str,
    priority: str,
    recipient_role: str,
    source_table: str,
    source_table_display_name: str,
    action_url: Optional[str],
    data: dict,
) -> dict:
    return {
        "type": type,
        "title": title,
        "message": message,
        "icon": icon,
        "priority": priority,
        "recipient_role": recipient_role,
        "source_table": source_table,
        "source_table_display_name": source_table_display_name,
        "action_url": action_url,
        "data": data,
    }


def user_registered(d: dict) -> dict:
    return _template(
        "user_registration", "New User Registered",
        f"{d.get('fullName')} ({d.get('email')}) has successfully registered for an account.",
        "👤", "normal", Role.admin.value, "auth.users", "User Registration", "/settings/users", d,
    )


def inquiry_received(d: dict) -> dict:
    return _template(
        "inquiry_received", "New Property Inquiry",
        f"{d.get('clientName')} ({d.get('clientEmail')}) sent an inquiry about "
        f"{d.get('propertyTitle') or 'a property'}.",
        "❓", "normal", Role.sales_representative.value, "client_inquiries", "Client Inquiry",
        "/client-inquiries", d,
    )


def reservation_submitted(d: dict) -> dict:
    return _template(
        "reservation_submitted", "New Property Reservation",
        f"{d.get('clientName')} submitted a reservation for {d.get('propertyTitle') or 'a property'}. "
        f"Tracking: {d.get('trackingNumber')}",
        "📅", "high", Role.sales_representative.value, "property_reservations", "Property Reservation",
        "/client-reservation", d,
    )


def reservation_approved(d: dict) -> dict:
    return _template(
        "reservation_approved", "🎉 Reservation Approved!",
        f"Congratulations! Your reservation ({d.get('trackingNumber')}) for {d.get('propertyTitle')} "
        "has been approved. Our team will contact you shortly with next steps.",
        "✅", "urgent", Role.sales_representative.value, "property_reservations", "Property Reservation",
        "/client-bookings", d,
    )


def reservation_rejected(d: dict) -> dict:
    reason = f"Reason: {d['notes']}" if d.get("notes") else "Please contact us for more information."
    return _template(
        "reservation_rejected", "Reservation Update",
        f"Your reservation ({d.get('trackingNumber')}) for {d.get('propertyTitle')} was not approved. {reason}",
        "❌", "high", Role.sales_representative.value, "property_reservations", "Property Reservation",
        "/client-bookings", d,
    )


def reservation_reverted(d: dict) -> dict:
    return _template(
        "reservation_reverted", "🔄 Reservation Status Updated",
        f"Your reservation ({d.get('trackingNumber')}) for {d.get('propertyTitle')} has been reverted back "
        "to pending status. Our team will review it again and contact you shortly.",
        "🔄", "high", Role.sales_representative.value, "property_reservations", "Property Reservation",
        "/client-bookings", d,
    )


def contract_created(d: dict) -> dict:
    return _template(
        "contract_created", "New Contract Created",
        f"Contract {d.get('contractNumber')} has been created for {d.get('clientName')}.",
        "📄", "high", Role.admin.value, "property_contracts", "Property Contract",
        "/client-contract-to-sell", d,
    )


def contract_transferred(d: dict) -> dict:
    return _template(
        "contract_transferred", "Contract Transferred",
        f"Contract {d.get('contractNumber')} has been transferred from {d.get('fromName')} to {d.get('toName')}.",
        "🔄", "urgent", Role.admin.value, "property_contracts", "Contract Transfer",
        "/client-contract-to-sell", d,
    )


def payment_received(d: dict) -> dict:
    amount = float(d.get("amount") or 0)
    return _template(
        "payment_received", "Payment Received",
        f"₱{amount:,.2f} payment received for {d.get('contractNumber')}. OR#: {d.get('orNumber')}",
        "💰", "normal", Role.collection.value, "contract_payment_transactions", "Payment Transaction",
        "/transactions", d,
    )


def tour_booked(d: dict) -> dict:
    return _template(
        "tour_booked", "New Tour Booking",
        f"{d.get('clientName')} booked a tour for {d.get('propertyTitle')} on {d.get('tourDate')}.",
        "🏠", "normal", Role.sales_representative.value, "tour_bookings", "Tour Booking",
        "/client-bookings", d,
    )


def tour_approved(d: dict) -> dict:
    return _template(
        "tour_approved", "Tour Approved",
        f"Tour booking for {d.get('propertyTitle')} on {d.get('tourDate')} has been approved.",
        "✅", "normal", Role.sales_representative.value, "tour_bookings", "Tour Booking",
        "/client-bookings", d,
    )


def tour_rejected(d: dict) -> dict:
    return _template(
        "tour_rejected", "Tour Rejected",
        f"Tour booking for {d.get('propertyTitle')} on {d.get('tourDate')} has been rejected.",
        "❌", "normal", Role.sales_representative.value, "tour_bookings", "Tour Booking",
        "/client-bookings", d,
    )


def announcement_published(d: dict) -> dict:
    return _template(
        "announcement_published", "New Announcement Published",
        f'"{d.get("title")}" has been published to all homeowners.',
        "📢", "normal", Role.admin.value, "homeowner_announcements", "Announcement",
        "/homeowner-announcement", d,
    )


# Complaints: filed by homeowners, status changes go back to them
def complaint_filed(d: dict) -> dict:
    return _template(
        "complaint_filed", "New Complaint Filed",
        f"{d.get('clientName')} filed a {d.get('complaintType')} complaint: {d.get('subject')}",
        "⚠️", "high", Role.admin.value, "complaint_tbl", "Complaint", "/complaints", d,
    )


def _complaint_update(kind: str, title: str, verb: str, icon: str, priority: str = "normal") -> Callable[[dict], dict]:
    def build(d: dict) -> dict:
        return _template(
            kind, title, f'Your complaint "{d.get("subject")}" {verb}.',
            icon, priority, Role.home_owner.value, "complaint_tbl", "Complaint", "/client-complaints", d,
        )
    return build


complaint_approved = _complaint_update("complaint_approved", "Complaint Under Investigation",
                                       "is now being investigated", "🔍")
complaint_resolved = _complaint_update("complaint_resolved", "Complaint Resolved", "has been resolved", "✅")
complaint_rejected = _complaint_update("complaint_rejected", "Complaint Closed", "has been closed", "📁")
complaint_escalated = _complaint_update("complaint_escalated", "Complaint Escalated",
                                        "has been escalated to management", "⬆️", "high")
complaint_reverted = _complaint_update("complaint_reverted", "Complaint Status Updated",
                                       "has been moved back to pending", "🔄")


# Service requests
def service_request_created(d: dict) -> dict:
    return _template(
        "service_request_created", "New Service Request",
        f"{d.get('clientName')} submitted a {d.get('requestType')} request: {d.get('title')}",
        "🔧", "normal", Role.admin.value, "request_tbl", "Service Request", "/service-requests", d,
    )


def _service_request_update(kind: str, title: str, verb: str, icon: str) -> Callable[[dict], dict]:
    def build(d: dict) -> dict:
        return _template(
            kind, title, f'Your service request "{d.get("title")}" {verb}.',
            icon, "normal", Role.home_owner.value, "request_tbl", "Service Request", "/client-requests", d,
        )
    return build


service_request_approved = _service_request_update("service_request_approved", "Service Request Approved",
                                                   "has been approved and is being processed", "✅")
service_request_completed = _service_request_update("service_request_completed", "Service Request Completed",
                                                    "has been completed", "🎉")
service_request_declined = _service_request_update("service_request_declined", "Service Request Declined",
                                                   "was declined", "❌")
service_request_reverted = _service_request_update("service_request_reverted", "Service Request Status Updated",
                                                   "has been moved back to pending", "🔄")


def system_event(d: dict) -> dict:
    return _template(
        "system_event", d.get("title"), d.get("message"),
        d.get("icon") or "ℹ️", d.get("priority") or "normal",
        d.get("recipient_role") or Role.admin.value,
        d.get("source_table") or "system", d.get("source_table_display_name") or "System",
        d.get("action_url"), d.get("data") or {},
    )


TEMPLATES: Dict[str, Callable[[dict], dict]] = {
    "USER_REGISTERED": user_registered,
    "INQUIRY_RECEIVED": inquiry_received,
    "RESERVATION_SUBMITTED": reservation_submitted,
    "RESERVATION_APPROVED": reservation_approved,
    "RESERVATION_REJECTED": reservation_rejected,
    "RESERVATION_REVERTED": reservation_reverted,
    "CONTRACT_CREATED": contract_created,
    "CONTRACT_TRANSFERRED": contract_transferred,
    "PAYMENT_RECEIVED": payment_received,
    "TOUR_BOOKED": tour_booked,
    "TOUR_APPROVED": tour_approved,
    "TOUR_REJECTED": tour_rejected,
    "ANNOUNCEMENT_PUBLISHED": announcement_published,
    "COMPLAINT_FILED": complaint_filed,
    "COMPLAINT_APPROVED": complaint_approved,
    "COMPLAINT_RESOLVED": complaint_resolved,
    "COMPLAINT_REJECTED": complaint_rejected,
    "COMPLAINT_ESCALATED": complaint_escalated,
    "COMPLAINT_REVERTED": complaint_reverted,
    "SERVICE_REQUEST_CREATED": service_request_created,
    "SERVICE_REQUEST_APPROVED": service_request_approved,
    "SERVICE_REQUEST_COMPLETED": service_request_completed,
    "SERVICE_REQUEST_DECLINED": service_request_declined,
    "SERVICE_REQUEST_REVERTED": service_request_reverted,
    "SYSTEM_EVENT": system_event,
}


def build_notification(event: str, data: Optional[Dict[str, Any]] = None, **overrides) -> dict:
    """Render a template by event name, optionally overriding fields (e.g. recipient_role)."""
    notification = TEMPLATES[event](data or {})
    notification.update(overrides)
    return notification
