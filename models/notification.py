# models/notification.py

from typing import Any, Dict, Optional
from pydantic import BaseModel

from models.enums import NotificationPriority


class NotificationCreate(BaseModel):
    notification_type: str = "system_event"
    title: Optional[str] = None
    message: Optional[str] = None
    icon: str = "📢"
    priority: NotificationPriority = NotificationPriority.normal
    recipient_role: Optional[str] = "admin"
    recipient_id: Optional[str] = None
    source_table: str = "system"
    source_table_display_name: str = "System"
    source_record_id: Optional[str] = None
    action_url: Optional[str] = None
    data: Dict[str, Any] = {}


class NotificationUpdate(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    read_at: Optional[str] = None
