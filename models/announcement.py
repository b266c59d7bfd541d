# models/announcement.py

from typing import Optional
from pydantic import BaseModel


class AnnouncementCreate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    target_audience: Optional[str] = None
    property_id: Optional[str] = None
    author: Optional[str] = None
    author_role: Optional[str] = None
    status: Optional[str] = None
    is_pinned: bool = False

    def to_row(self) -> dict:
        return {
            "title": self.title,
            "content": self.content,
            "image_url": self.image_url,
            "category": self.category or "general",
            "priority": self.priority or "normal",
            "target_audience": self.target_audience or "all_homeowners",
            "property_id": self.property_id or None,
            "author": self.author or "Admin",
            "author_role": self.author_role or "admin",
            "status": self.status or "draft",
            "is_pinned": self.is_pinned,
        }


class AnnouncementUpdate(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    target_audience: Optional[str] = None
    property_id: Optional[str] = None
    author: Optional[str] = None
    status: Optional[str] = None
    is_pinned: Optional[bool] = None
