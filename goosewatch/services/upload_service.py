"""Report photo uploads, served back from /uploads."""

import logging
import uuid
from pathlib import Path

from fastapi import UploadFile

from goosewatch.config import settings
from goosewatch.core.exceptions import StorageError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}


def has_upload(file: UploadFile | None) -> bool:
    """Multipart forms send an empty part when no file was chosen."""
    return file is not None and bool(file.filename)


def validate_image_file(file: UploadFile) -> tuple[bool, str]:
    """
    Validate image type by extension and declared MIME type.

    Returns:
        (is_valid, error_message)
    """
    ext = Path(file.filename or "").suffix.lower()
    if ext not in ALLOWED_EXTENSIONS or file.content_type not in ALLOWED_MIME_TYPES:
        return False, "Only image files are allowed!"
    return True, ""


async def validate_image_file_size(file: UploadFile) -> tuple[bool, str]:
    content = await file.read()
    await file.seek(0)

    if len(content) > settings.MAX_UPLOAD_SIZE:
        return False, f"File too large. Maximum size: {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
    return True, ""


async def save_report_image(file: UploadFile) -> str:
    """
    Store a validated image under a random name.

    Returns:
        Public URL path of the stored file, e.g. /uploads/<uuid>.png
    """
    upload_path = Path(settings.UPLOAD_DIR)
    ext = Path(file.filename or "").suffix.lower()
    file_name = f"{uuid.uuid4()}{ext}"

    content = await file.read()
    try:
        upload_path.mkdir(parents=True, exist_ok=True)
        with open(upload_path / file_name, "wb") as f:
            f.write(content)
    except OSError as e:
        logger.error(f"Failed to store upload {file.filename!r}: {e}")
        raise StorageError("Could not store uploaded image") from e

    logger.info(f"Stored report image {file_name} ({len(content)} bytes)")
    return f"/uploads/{file_name}"
