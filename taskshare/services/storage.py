"""Local-disk storage for uploaded images."""
from __future__ import annotations

import logging
import posixpath
import uuid
from pathlib import Path

from fastapi import HTTPException, UploadFile, status
from werkzeug.utils import secure_filename

from taskshare.config import get_settings
from taskshare.utils.errors import error_response

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024
_CHUNK = 1024 * 1024


def media_root() -> Path:
    return Path(get_settings().MEDIA_ROOT)


def image_path(kind: str, filename: str) -> str:
    """Relative path stored in the database and returned to clients."""

    return posixpath.join("images", kind, posixpath.basename(filename))


def _validated_name(upload: UploadFile) -> str:
    original = secure_filename(upload.filename or "")
    suffix = Path(original).suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response(
                "UNSUPPORTED_FILE_TYPE",
                "Only JPG, JPEG, PNG, GIF or WEBP images are allowed.",
                {"filename": upload.filename},
            ),
        )
    return f"{uuid.uuid4().hex}-{original}"


async def save_image(upload: UploadFile, kind: str) -> str:
    """Write ``upload`` under ``MEDIA_ROOT/images/<kind>/`` and return its relative path."""

    filename = _validated_name(upload)
    relative = image_path(kind, filename)
    target = media_root() / relative
    target.parent.mkdir(parents=True, exist_ok=True)

    size = 0
    try:
        with target.open("wb") as handle:
            while True:
                chunk = await upload.read(_CHUNK)
                if not chunk:
                    break
                size += len(chunk)
                if size > MAX_IMAGE_BYTES:
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=error_response("FILE_TOO_LARGE", "Image exceeds 5 MB limit."),
                    )
                handle.write(chunk)
    except HTTPException:
        target.unlink(missing_ok=True)
        raise
    finally:
        await upload.close()

    logger.info("Image stored", extra={"path": relative, "bytes": size})
    return relative


async def save_images(uploads: list[UploadFile] | None, kind: str) -> list[str]:
    saved: list[str] = []
    for upload in uploads or []:
        if not upload.filename:
            continue
        saved.append(await save_image(upload, kind))
    return saved


__all__ = ["ALLOWED_EXTENSIONS", "MAX_IMAGE_BYTES", "image_path", "media_root", "save_image", "save_images"]
