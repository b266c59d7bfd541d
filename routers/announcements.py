# routers/announcements.py

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from supabase import Client

from core.config import settings
from core.errors import ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.notifications import build_notification, create_notification
from core.side_effects import non_critical
from core.storage import (
    ANNOUNCEMENT_IMAGE_MAX_BYTES,
    ANNOUNCEMENT_IMAGE_TYPES,
    generated_filename,
    remove_object,
    upload_bytes,
    validate_file,
)
from core.utils import iso_now
from dependencies.clients import get_supabase
from models.announcement import AnnouncementCreate, AnnouncementUpdate

router = APIRouter(
    prefix="/api/homeowner-announcements",
    tags=["Homeowner Announcements"],
)

ANNOUNCEMENTS = "homeowner_announcements"
IMAGE_FOLDER = "announcements"
IMAGE_PREFIX = "announcement"
PUBLISHED = "published"


# -----------------------------------------------------
# GET /api/homeowner-announcements?status=&category=
# -----------------------------------------------------
@router.get("", summary="List announcements (pinned first)")
def list_announcements(
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    query = (
        client.table(ANNOUNCEMENTS)
        .select("*")
        .order("is_pinned", desc=True)
        .order("created_date", desc=True)
    )

    if status:
        query = query.eq("status", status)
    if category:
        query = query.eq("category", category)

    try:
        announcements = query.execute().data or []
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch announcements")

    return {"success": True, "data": announcements}


# -----------------------------------------------------
# POST /api/homeowner-announcements
# -----------------------------------------------------
@router.post("", status_code=201, summary="Create an announcement")
def create_announcement(payload: AnnouncementCreate, client: Client = Depends(get_supabase)):
    if not payload.title or not payload.content or not payload.image_url:
        raise ValidationFailed("Title, content, and image are required")

    row = payload.to_row()
    row["publish_date"] = iso_now() if row["status"] == PUBLISHED else None

    try:
        announcement = client.table(ANNOUNCEMENTS).insert(row).execute().data[0]
    except Exception as e:
        raise handle_supabase_error(e, "Failed to create announcement")

    logger.info(f"Announcement created: {announcement.get('id')} ({row['status']})")

    if row["status"] == PUBLISHED:
        non_critical(
            "announcement_published_notification",
            create_notification,
            client,
            build_notification("ANNOUNCEMENT_PUBLISHED", {
                "announcementId": announcement.get("id"),
                "title": announcement.get("title"),
                "category": announcement.get("category"),
            }),
        )

    return {
        "success": True,
        "data": announcement,
        "message": "Announcement created successfully",
    }


# -----------------------------------------------------
# PUT /api/homeowner-announcements
# -----------------------------------------------------
@router.put("", summary="Update an announcement")
def update_announcement(payload: AnnouncementUpdate, client: Client = Depends(get_supabase)):
    if not payload.id:
        raise ValidationFailed("Announcement ID is required", "Announcement ID is required")

    changes = payload.model_dump(exclude={"id"}, exclude_none=True)
    if "property_id" in changes:
        changes["property_id"] = changes["property_id"] or None
    if payload.status == PUBLISHED:
        changes["publish_date"] = iso_now()

    try:
        rows = client.table(ANNOUNCEMENTS).update(changes).eq("id", payload.id).execute().data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to update announcement")

    return {
        "success": True,
        "data": rows[0] if rows else None,
        "message": "Announcement updated successfully",
    }


# -----------------------------------------------------
# DELETE /api/homeowner-announcements?id=
# -----------------------------------------------------
@router.delete("", summary="Delete an announcement")
def delete_announcement(id: Optional[str] = Query(None), client: Client = Depends(get_supabase)):
    if not id:
        raise ValidationFailed("Announcement ID is required", "Announcement ID is required")

    try:
        client.table(ANNOUNCEMENTS).delete().eq("id", id).execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to delete announcement")

    return {"success": True, "message": "Announcement deleted successfully"}


# =====================================================
# Images
# =====================================================
@router.post("/upload", summary="Upload an announcement image")
async def upload_image(file: Optional[UploadFile] = File(None), client: Client = Depends(get_supabase)):
    if file is None or not file.filename:
        raise ValidationFailed("No file uploaded", "No file uploaded")

    content = await file.read()
    validate_file(file.content_type, len(content), ANNOUNCEMENT_IMAGE_TYPES, ANNOUNCEMENT_IMAGE_MAX_BYTES)

    stored = upload_bytes(
        client,
        settings.STORAGE_BUCKET,
        IMAGE_FOLDER,
        generated_filename(IMAGE_PREFIX, file.filename),
        content,
        file.content_type,
    )

    return {
        "success": True,
        "message": "Announcement image uploaded successfully",
        "filename": stored.filename,
        "url": stored.public_url,
        "path": stored.path,
        "size": len(content),
        "type": file.content_type,
    }


@router.delete("/upload", summary="Delete an announcement image")
def delete_image(
    filename: Optional[str] = Query(None),
    path: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    if not filename and not path:
        raise ValidationFailed("Filename or path is required", "Filename or path is required")

    storage_path = path or f"{IMAGE_FOLDER}/{filename}"

    # Only generated announcement images may be removed through this route
    folder, _, name = storage_path.partition("/")
    if folder != IMAGE_FOLDER or not name.startswith(f"{IMAGE_PREFIX}-") or "/" in name or ".." in name:
        raise ValidationFailed("Invalid filename", "Invalid filename")

    remove_object(client, settings.STORAGE_BUCKET, storage_path)

    return {
        "success": True,
        "message": "Announcement image deleted successfully",
        "filename": filename or storage_path,
    }


@router.get("/upload", summary="Upload endpoint info")
def upload_info():
    return {
        "success": True,
        "message": "Announcement image upload API endpoint",
        "usage": "POST to upload images for homeowner announcements",
        "maxSize": "5MB",
        "allowedTypes": ["JPEG", "JPG", "PNG", "GIF", "WebP"],
    }
