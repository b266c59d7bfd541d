# services/approvals.py
"""
Multi-step approval workflows for tour appointments and property
reservations.

Every status change is a compare-and-swap: the UPDATE filters on the row id
AND the status the caller expects to find. Zero affected rows means another
actor got there first (or the row does not exist); nothing is locked.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Collection, FrozenSet, List, Optional, Union

from supabase import Client

from core.errors import NotFound, StateConflict, ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.notifications import build_notification, create_notification
from core.roles import ADMIN, CS, SALES, STAFF_ROLES, Role
from core.side_effects import SideEffectResult, non_critical
from dependencies.auth import require_actor_role
from models.enums import AppointmentStatus, PaymentStatus, ReservationStatus

APPOINTMENTS = "appointments"
RESERVATIONS = "property_reservations"
RESERVATION_TRANSACTIONS = "reservation_transactions"

RESERVATION_FEE_DUE_DAYS = 7


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


# ============================================================
# Compare-and-swap
# ============================================================
def compare_and_swap(
    client: Client,
    table: str,
    key_column: str,
    key: str,
    expected_status: Union[str, Collection[str]],
    changes: dict,
) -> List[dict]:
    """
    UPDATE `table` SET changes WHERE key_column = key AND status = expected.
    `expected_status` may be a collection (status IN ...).
    Returns the affected rows; an empty list means the swap lost.
    """
    query = client.table(table).update(changes).eq(key_column, key)

    if isinstance(expected_status, str):
        query = query.eq("status", str(expected_status))
    else:
        query = query.in_("status", [str(s) for s in expected_status])

    try:
        res = query.execute()
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to update {table}", status_code=400)

    return res.data or []


# ============================================================
# TOUR APPOINTMENTS
# ============================================================
@dataclass(frozen=True)
class TourTransition:
    source: AppointmentStatus
    target: AppointmentStatus
    roles: FrozenSet[Role]
    actor_column: str
    time_column: str
    notes_column: str
    message: str


CS_APPROVAL = TourTransition(
    source=AppointmentStatus.pending,
    target=AppointmentStatus.cs_approved,
    roles=frozenset({ADMIN, CS}),
    actor_column="cs_approved_by",
    time_column="cs_approved_at",
    notes_column="cs_approval_notes",
    message="Appointment approved by Customer Service. Awaiting Sales Representative approval.",
)

SALES_APPROVAL = TourTransition(
    source=AppointmentStatus.cs_approved,
    target=AppointmentStatus.sales_approved,
    roles=frozenset({ADMIN, SALES}),
    actor_column="sales_approved_by",
    time_column="sales_approved_at",
    notes_column="sales_approval_notes",
    message="Appointment fully approved by Sales Representative!",
)

TOUR_APPROVALS = (CS_APPROVAL, SALES_APPROVAL)

TOUR_REJECTABLE = (
    AppointmentStatus.pending,
    AppointmentStatus.cs_approved,
    AppointmentStatus.sales_approved,
)


def fetch_appointment(client: Client, appointment_id: str) -> dict:
    rows = (
        client.table(APPOINTMENTS)
        .select("*")
        .eq("appointment_id", appointment_id)
        .limit(1)
        .execute()
    ).data

    if not rows:
        raise NotFound("Appointment not found. Error: No appointment found", "Appointment not found")

    return rows[0]


def select_tour_transition(role: Role, current_status: str) -> TourTransition:
    for transition in TOUR_APPROVALS:
        if role in transition.roles and current_status == transition.source:
            return transition

    raise StateConflict(f"Cannot approve appointment. Current status: {current_status}, Your role: {role}")


def apply_tour_transition(
    client: Client,
    appointment_id: str,
    transition: TourTransition,
    actor_id: str,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    stamp = _now(now).isoformat()
    rows = compare_and_swap(
        client,
        APPOINTMENTS,
        "appointment_id",
        appointment_id,
        transition.source,
        {
            "status": transition.target.value,
            transition.actor_column: actor_id,
            transition.time_column: stamp,
            transition.notes_column: notes or None,
            "updated_at": stamp,
        },
    )

    if not rows:
        logger.warning(f"Appointment {appointment_id} CAS lost (expected {transition.source})")
        raise StateConflict(
            f"Appointment not found or already processed. Expected status: {transition.source}",
            "Update failed",
        )

    return rows[0]


def approve_tour(
    client: Client,
    appointment_id: Optional[str],
    approver_id: Optional[str],
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    pending → cs_approved (admin, customer service)
    cs_approved → sales_approved (admin, sales representative)
    """
    if not appointment_id:
        raise ValidationFailed("Appointment ID is required", "Missing appointment ID")

    role = require_actor_role(client, approver_id, STAFF_ROLES, "approve appointments")
    appointment = fetch_appointment(client, appointment_id)
    transition = select_tour_transition(role, appointment.get("status"))

    updated = apply_tour_transition(client, appointment_id, transition, approver_id, notes, now)
    logger.info(f"Appointment {appointment_id}: {transition.source} → {transition.target} by {role}")

    notification = non_critical(
        "tour_approved_notification",
        create_notification,
        client,
        build_notification("TOUR_APPROVED", {
            "appointmentId": appointment_id,
            "propertyTitle": updated.get("property_title"),
            "tourDate": updated.get("appointment_date"),
            "status": transition.target.value,
        }),
    )

    return {"appointment": updated, "message": transition.message, "notification": notification}


def reject_tour(
    client: Client,
    appointment_id: Optional[str],
    rejector_id: Optional[str],
    reason: Optional[str],
    now: Optional[datetime] = None,
) -> dict:
    if not appointment_id:
        raise ValidationFailed("Appointment ID is required", "Missing appointment ID")

    if not reason or not reason.strip():
        raise ValidationFailed("Rejection reason is required", "Missing rejection reason")

    role = require_actor_role(client, rejector_id, STAFF_ROLES, "reject appointments")

    stamp = _now(now).isoformat()
    rows = compare_and_swap(
        client,
        APPOINTMENTS,
        "appointment_id",
        appointment_id,
        TOUR_REJECTABLE,
        {
            "status": AppointmentStatus.rejected.value,
            "rejected_by": rejector_id,
            "rejected_at": stamp,
            "rejection_reason": reason.strip(),
            "updated_at": stamp,
        },
    )

    if not rows:
        raise StateConflict("Appointment not found or already processed", "Update failed")

    appointment = rows[0]
    logger.info(f"Appointment {appointment_id} rejected by {role}")

    notification = non_critical(
        "tour_rejected_notification",
        create_notification,
        client,
        build_notification("TOUR_REJECTED", {
            "appointmentId": appointment_id,
            "propertyTitle": appointment.get("property_title"),
            "tourDate": appointment.get("appointment_date"),
            "reason": reason.strip(),
        }),
    )

    return {"appointment": appointment, "notification": notification}


# ============================================================
# PROPERTY RESERVATIONS
# ============================================================
def receipt_number_for(reservation_id: str, now: datetime) -> str:
    return f"RCT-{now.year}-{reservation_id[:8].upper()}"


def _reservation_notice(reservation: dict, status: str, notes: Optional[str] = None) -> dict:
    return {
        "reservationId": reservation.get("reservation_id"),
        "trackingNumber": reservation.get("tracking_number"),
        "propertyId": reservation.get("property_id"),
        "propertyTitle": reservation.get("property_title"),
        "clientName": reservation.get("client_name"),
        "clientEmail": reservation.get("client_email"),
        "reservationFee": reservation.get("reservation_fee"),
        "status": status,
        "notes": notes,
    }


def _notify_client(client: Client, event: str, reservation: dict, status: str, notes: Optional[str] = None) -> SideEffectResult:
    # Addressed to the client only; no role-based audience
    return non_critical(
        f"{event.lower()}_notification",
        create_notification,
        client,
        build_notification(event, _reservation_notice(reservation, status, notes), recipient_role=None),
        recipient_id=reservation.get("user_id"),
    )


def _create_fee_transaction(
    client: Client,
    reservation: dict,
    approved_by: Optional[str],
    notes: Optional[str],
    now: datetime,
    due_days: int,
) -> dict:
    reservation_id = reservation["reservation_id"]
    receipt_number = receipt_number_for(reservation_id, now)

    existing = (
        client.table(RESERVATION_TRANSACTIONS)
        .select("transaction_id, reservation_id")
        .eq("receipt_number", receipt_number)
        .execute()
    ).data or []
    if existing:
        logger.warning(
            f"Receipt number {receipt_number} already used by reservation "
            f"{existing[0].get('reservation_id')}; issuing duplicate for {reservation_id}"
        )

    rows = (
        client.table(RESERVATION_TRANSACTIONS)
        .insert({
            "reservation_id": reservation_id,
            "transaction_type": "reservation_fee",
            "amount": reservation.get("reservation_fee"),
            "payment_status": PaymentStatus.pending.value,
            "receipt_number": receipt_number,
            "due_date": (now + timedelta(days=due_days)).isoformat(),
            "notes": notes or "Reservation fee payment - Awaiting payment",
            "processed_by": approved_by or None,
        })
        .execute()
    ).data

    return rows[0] if rows else None


def approve_reservation(
    client: Client,
    reservation_id: Optional[str],
    approved_by: Optional[str],
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    due_days: int = RESERVATION_FEE_DUE_DAYS,
) -> dict:
    """pending → approved, then open the reservation-fee transaction."""
    if not reservation_id:
        raise ValidationFailed("Reservation ID is required", "Missing reservation ID")

    require_actor_role(client, approved_by, STAFF_ROLES, "approve reservations")

    now = _now(now)
    rows = compare_and_swap(
        client,
        RESERVATIONS,
        "reservation_id",
        reservation_id,
        ReservationStatus.pending,
        {"status": ReservationStatus.approved.value, "updated_at": now.isoformat()},
    )
    if not rows:
        raise StateConflict(
            f"Reservation not found or already processed. Expected status: {ReservationStatus.pending}",
            "Update failed",
        )

    reservation = rows[0]
    logger.info(f"Reservation {reservation_id} approved")

    transaction = non_critical(
        "reservation_fee_transaction",
        _create_fee_transaction,
        client, reservation, approved_by, notes, now, due_days,
    )
    notification = _notify_client(client, "RESERVATION_APPROVED", reservation, "approved", notes)

    return {
        "reservation": reservation,
        "transaction": transaction.data if transaction.ok else None,
        "side_effects": [transaction, notification],
    }


def reject_reservation(
    client: Client,
    reservation_id: Optional[str],
    rejected_by: Optional[str],
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    if not reservation_id:
        raise ValidationFailed("Reservation ID is required", "Missing reservation ID")

    require_actor_role(client, rejected_by, STAFF_ROLES, "reject reservations")

    changes = {"status": ReservationStatus.rejected.value, "updated_at": _now(now).isoformat()}
    if reason:
        changes["admin_notes"] = reason

    rows = compare_and_swap(client, RESERVATIONS, "reservation_id", reservation_id, ReservationStatus.pending, changes)
    if not rows:
        raise StateConflict(
            f"Reservation not found or already processed. Expected status: {ReservationStatus.pending}",
            "Update failed",
        )

    reservation = rows[0]
    logger.info(f"Reservation {reservation_id} rejected")

    notification = _notify_client(client, "RESERVATION_REJECTED", reservation, "rejected", reason)
    return {"reservation": reservation, "side_effects": [notification]}


def _delete_pending_transactions(client: Client, reservation_id: str) -> List[dict]:
    return (
        client.table(RESERVATION_TRANSACTIONS)
        .delete()
        .eq("reservation_id", reservation_id)
        .eq("payment_status", PaymentStatus.pending.value)
        .execute()
    ).data or []


def revert_reservation(
    client: Client,
    reservation_id: Optional[str],
    reverted_by: Optional[str],
    now: Optional[datetime] = None,
) -> dict:
    """approved | rejected → pending; drops fee transactions nobody has paid yet."""
    if not reservation_id:
        raise ValidationFailed("Reservation ID is required", "Missing reservation ID")

    require_actor_role(client, reverted_by, STAFF_ROLES, "revert reservations")

    rows = compare_and_swap(
        client,
        RESERVATIONS,
        "reservation_id",
        reservation_id,
        (ReservationStatus.approved, ReservationStatus.rejected),
        {"status": ReservationStatus.pending.value, "updated_at": _now(now).isoformat()},
    )
    if not rows:
        raise StateConflict(
            "Reservation not found or already processed. Expected status: approved or rejected",
            "Update failed",
        )

    reservation = rows[0]
    logger.info(f"Reservation {reservation_id} reverted to pending")

    cleanup = non_critical("pending_transaction_cleanup", _delete_pending_transactions, client, reservation_id)
    notification = _notify_client(client, "RESERVATION_REVERTED", reservation, "pending")

    return {"reservation": reservation, "side_effects": [cleanup, notification]}
