# core/storage.py

import random
import time
from pathlib import PurePosixPath
from typing import Iterable, Optional

from pydantic import BaseModel
from supabase import Client

from core.errors import UpstreamError, ValidationFailed, extract_supabase_error
from core.logging_config import logger


ID_DOCUMENT_TYPES = frozenset({
    "image/jpeg", "image/jpg", "image/png", "image/webp", "application/pdf",
})
ID_DOCUMENT_MAX_BYTES = 10 * 1024 * 1024

ANNOUNCEMENT_IMAGE_TYPES = frozenset({
    "image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp",
})
ANNOUNCEMENT_IMAGE_MAX_BYTES = 5 * 1024 * 1024


class StoredFile(BaseModel):
    filename: str
    path: str
    public_url: str


def validate_file(content_type: Optional[str], size: int, allowed_types: Iterable[str], max_bytes: int):
    if not size:
        raise ValidationFailed("No file provided", "No file provided")

    if content_type not in allowed_types:
        allowed = ", ".join(sorted(allowed_types))
        raise ValidationFailed(f"Invalid file type. Allowed types: {allowed}", "Invalid file type")

    if size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ValidationFailed(f"File too large. Maximum size is {limit_mb}MB", "File too large")


def generated_filename(prefix: str, original_name: Optional[str]) -> str:
    """`<prefix>-<epoch ms>-<random>.<ext>`, keeping the upload's extension."""
    ext = PurePosixPath(original_name or "").suffix.lstrip(".").lower() or "bin"
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}.{ext}"


def upload_bytes(
    client: Client,
    bucket: str,
    folder: str,
    filename: str,
    content: bytes,
    content_type: str,
) -> StoredFile:
    path = f"{folder}/{filename}" if folder else filename

    try:
        client.storage.from_(bucket).upload(
            path,
            content,
            {"content-type": content_type, "upsert": "false"},
        )
        public_url = client.storage.from_(bucket).get_public_url(path)
    except Exception as e:
        detail = extract_supabase_error(e)
        logger.error(f"Storage upload failed for {bucket}/{path}: {detail}")
        raise UpstreamError(f"Failed to upload file to storage: {detail}", detail)

    logger.info(f"Uploaded {bucket}/{path} ({len(content)} bytes)")
    return StoredFile(filename=filename, path=path, public_url=public_url)


def remove_object(client: Client, bucket: str, path: str):
    try:
        client.storage.from_(bucket).remove([path])
    except Exception as e:
        detail = extract_supabase_error(e)
        logger.error(f"Storage delete failed for {bucket}/{path}: {detail}")
        raise UpstreamError("Failed to delete file from storage", detail)

    logger.info(f"Deleted {bucket}/{path}")
