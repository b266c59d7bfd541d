# services/tickets.py
"""
Homeowner tickets: complaints and service requests.

Both are filed against the homeowner's contract, notify admins and
customer service on creation, and notify the homeowner when staff move
them between statuses. Only the table, the required fields and the
wording differ.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from supabase import Client

from core.errors import NotFound, ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.notifications import build_notification, create_notification, notify_roles
from core.roles import ADMIN, CS
from core.side_effects import SideEffectResult, non_critical
from services.contracts import CONTRACTS, contract_for_user


@dataclass(frozen=True)
class TicketKind:
    label: str
    table: str
    required: Tuple[str, ...]
    missing_fields_message: str
    no_contract_message: str
    no_contract_list_message: str
    no_owner_message: str
    created_event: str
    created_message: str
    missing_status_message: str
    # optional column → default when the form leaves it blank
    defaults: Dict[str, str]
    stores_user_id: bool
    status_events: Dict[str, str]


COMPLAINTS = TicketKind(
    label="Complaint",
    table="complaint_tbl",
    required=("subject", "description", "complaint_type"),
    missing_fields_message="Subject, description, and complaint type are required",
    no_contract_message="Contract not found. Please contact support.",
    no_contract_list_message="No contract found for this user",
    no_owner_message="Contract ID is required",
    created_event="COMPLAINT_FILED",
    created_message="Complaint filed successfully",
    missing_status_message="Complaint ID and status are required",
    defaults={"severity": "medium"},
    stores_user_id=False,
    status_events={
        "investigating": "COMPLAINT_APPROVED",
        "resolved": "COMPLAINT_RESOLVED",
        "closed": "COMPLAINT_REJECTED",
        "escalated": "COMPLAINT_ESCALATED",
        "pending": "COMPLAINT_REVERTED",
    },
)

SERVICE_REQUESTS = TicketKind(
    label="Service request",
    table="request_tbl",
    required=("title", "description", "request_type"),
    missing_fields_message="Title, description, and request type are required",
    no_contract_message="Homeowner profile not found. Please contact support.",
    no_contract_list_message="No homeowner profile found for this user",
    no_owner_message="Homeowner ID is required",
    created_event="SERVICE_REQUEST_CREATED",
    created_message="Service request created successfully",
    missing_status_message="Request ID and status are required",
    defaults={"priority": "medium"},
    stores_user_id=True,
    status_events={
        "approved": "SERVICE_REQUEST_APPROVED",
        "in_progress": "SERVICE_REQUEST_APPROVED",
        "completed": "SERVICE_REQUEST_COMPLETED",
        "declined": "SERVICE_REQUEST_DECLINED",
        "cancelled": "SERVICE_REQUEST_DECLINED",
        "pending": "SERVICE_REQUEST_REVERTED",
    },
)


def _stamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# -----------------------------------------------------
# List
# -----------------------------------------------------
def list_tickets(client: Client, kind: TicketKind, user_id: Optional[str] = None) -> Tuple[list, str]:
    """Returns (rows, message). A user without a contract simply has none."""
    query = client.table(kind.table).select("*").order("created_date", desc=True)

    if user_id:
        contract = contract_for_user(client, user_id)
        if contract is None:
            return [], kind.no_contract_list_message
        query = query.eq("contract_id", contract["contract_id"])

    try:
        rows = query.execute().data or []
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to fetch {kind.label.lower()}s", status_code=400)

    return rows, f"{kind.label}s fetched successfully"


# -----------------------------------------------------
# Create
# -----------------------------------------------------
def create_ticket(client: Client, kind: TicketKind, body: dict) -> dict:
    if any(not body.get(field) for field in kind.required):
        raise ValidationFailed(kind.missing_fields_message, kind.missing_fields_message)

    user_id = body.get("user_id")
    if not user_id:
        raise ValidationFailed(kind.no_owner_message, kind.no_owner_message)

    contract = contract_for_user(client, user_id)
    if contract is None:
        raise NotFound(kind.no_contract_message, kind.no_contract_message)

    row = {field: body[field] for field in kind.required}
    row.update({
        "contract_id": contract["contract_id"],
        "property_id": contract.get("property_id"),
        "status": "pending",
        "created_date": _stamp(),
    })
    for column, default in kind.defaults.items():
        row[column] = body.get(column) or default
    if kind.stores_user_id:
        row["user_id"] = user_id

    try:
        ticket = client.table(kind.table).insert(row).execute().data[0]
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to create {kind.label.lower()}", status_code=400)

    logger.info(f"{kind.label} created: {ticket.get('id')}")

    notification = non_critical(
        f"{kind.created_event.lower()}_notification",
        notify_roles,
        client,
        build_notification(kind.created_event, {
            "clientName": contract.get("client_name") or "Unknown",
            "subject": body.get("subject"),
            "complaintType": body.get("complaint_type"),
            "title": body.get("title"),
            "requestType": body.get("request_type"),
        }),
        [ADMIN, CS],
    )

    return {"ticket": ticket, "side_effects": [notification]}


# -----------------------------------------------------
# Status change
# -----------------------------------------------------
def _owner_id(client: Client, ticket: dict, fallback: Optional[str]) -> Optional[str]:
    contract_id = ticket.get("contract_id")
    if contract_id:
        rows = client.table(CONTRACTS).select("user_id").eq("contract_id", contract_id).limit(1).execute().data
        if rows and rows[0].get("user_id"):
            return rows[0]["user_id"]
    return fallback


def _notify_owner(client: Client, kind: TicketKind, ticket: dict, status: str, fallback_user: Optional[str]) -> SideEffectResult:
    event = kind.status_events.get(status)
    if event is None:
        return SideEffectResult(name="status_notification", ok=True, data=None)

    recipient = _owner_id(client, ticket, fallback_user)
    if not recipient:
        return SideEffectResult(name="status_notification", ok=False, error="No homeowner to notify")

    return create_notification(
        client,
        build_notification(event, {"subject": ticket.get("subject"), "title": ticket.get("title")}),
        recipient_id=recipient,
    )


def update_ticket_status(client: Client, kind: TicketKind, ticket_id: Optional[str], status: Optional[str], user_id: Optional[str] = None) -> dict:
    if not ticket_id or not status:
        raise ValidationFailed(kind.missing_status_message, kind.missing_status_message)

    try:
        rows = (
            client.table(kind.table)
            .update({"status": status, "updated_date": _stamp()})
            .eq("id", ticket_id)
            .execute()
        ).data
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to update {kind.label.lower()}")

    if not rows:
        raise NotFound(f"{kind.label} not found")

    ticket = rows[0]
    logger.info(f"{kind.label} {ticket_id} → {status}")

    notification = non_critical("status_notification", _notify_owner, client, kind, ticket, status, user_id)
    return {"ticket": ticket, "side_effects": [notification]}
