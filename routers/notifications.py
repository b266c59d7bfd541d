# routers/notifications.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from core.errors import NotFound, ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.notifications import NOTIFICATIONS_TABLE
from core.utils import iso_now
from dependencies.clients import get_supabase
from models.enums import NotificationStatus
from models.notification import NotificationCreate, NotificationUpdate

router = APIRouter(
    prefix="/api/notifications",
    tags=["Notifications"],
)

# Sentinel used to address every row in a bulk delete
NIL_UUID = "00000000-0000-0000-0000-000000000000"


def _or_eq(column: str, value: str) -> str:
    return f'{column}.eq."{value}"'


# -----------------------------------------------------
# GET /api/notifications
# -----------------------------------------------------
@router.get("", summary="Notification feed")
def list_notifications(
    limit: int = Query(50, ge=1, le=500),
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    userId: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    query = (
        client.table(NOTIFICATIONS_TABLE)
        .select("*")
        .neq("status", NotificationStatus.archived.value)
        .order("created_at", desc=True)
        .limit(limit)
    )

    if status:
        query = query.eq("status", status)
    if priority:
        query = query.eq("priority", priority)

    # Addressed to the user, to their role, or to everyone
    if userId and role:
        query = query.or_(",".join([
            _or_eq("recipient_id", userId),
            _or_eq("recipient_role", role),
            _or_eq("recipient_role", "all"),
        ]))
    elif role:
        query = query.or_(",".join([_or_eq("recipient_role", role), _or_eq("recipient_role", "all")]))
    elif userId:
        query = query.eq("recipient_id", userId)

    try:
        notifications = query.execute().data or []
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch notifications")

    unread = sum(1 for n in notifications if n.get("status") == NotificationStatus.unread)

    return {
        "success": True,
        "data": notifications,
        "count": len(notifications),
        "unreadCount": unread,
    }


# -----------------------------------------------------
# POST /api/notifications
# -----------------------------------------------------
@router.post("", status_code=201, summary="Create a notification")
def create(payload: NotificationCreate, client: Client = Depends(get_supabase)):
    if not payload.title or not payload.message:
        raise ValidationFailed("Title and message are required")

    row = {
        **payload.model_dump(),
        "priority": payload.priority.value,
        "status": NotificationStatus.unread.value,
    }

    try:
        rows = client.table(NOTIFICATIONS_TABLE).insert(row).execute().data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to create notification")

    logger.info(f'Notification created: "{payload.title}"')
    return {
        "success": True,
        "data": rows[0] if rows else None,
        "message": "Notification created successfully",
    }


# -----------------------------------------------------
# PUT /api/notifications
# -----------------------------------------------------
@router.put("", summary="Mark a notification read / archived")
def update(payload: NotificationUpdate, client: Client = Depends(get_supabase)):
    if not payload.id:
        raise ValidationFailed("Notification ID is required", "Notification ID is required")

    changes = {"updated_at": iso_now()}
    if payload.status:
        if payload.status not in NotificationStatus.list():
            raise ValidationFailed(
                f"Invalid status. Must be one of: {', '.join(NotificationStatus.list())}",
                "Invalid status",
            )
        changes["status"] = payload.status

    if payload.read_at is not None:
        changes["read_at"] = payload.read_at
    elif payload.status == NotificationStatus.read:
        changes["read_at"] = iso_now()

    try:
        rows = client.table(NOTIFICATIONS_TABLE).update(changes).eq("id", payload.id).execute().data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to update notification")

    if not rows:
        raise NotFound("Notification not found")

    return {
        "success": True,
        "data": rows[0],
        "message": "Notification updated successfully",
    }


# -----------------------------------------------------
# DELETE /api/notifications?id= | ?clearAll=true
# -----------------------------------------------------
@router.delete("", summary="Delete one notification or clear all")
def delete(
    id: Optional[str] = Query(None),
    clearAll: bool = Query(False),
    client: Client = Depends(get_supabase),
):
    if clearAll:
        try:
            client.table(NOTIFICATIONS_TABLE).delete().neq("id", NIL_UUID).execute()
        except Exception as e:
            raise handle_supabase_error(e, "Failed to clear notifications")

        logger.info("All notifications cleared")
        return {"success": True, "message": "All notifications cleared successfully"}

    if not id:
        raise ValidationFailed("Notification ID is required", "Notification ID is required")

    try:
        client.table(NOTIFICATIONS_TABLE).delete().eq("id", id).execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to delete notification")

    return {"success": True, "message": "Notification deleted successfully"}
