"""
Profile picture storage.

Files land in <UPLOAD_DIR>/profile_pics and are served by the static mount
at /uploads.
"""
import secrets
import time
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from alumni_portal.core.config import settings
from alumni_portal.core.exceptions import FileTooLargeError, InvalidFileTypeError
from alumni_portal.core.logging_config import logger


IMAGE_MIME_TYPES = {
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}

PROFILE_PICS_URL_PREFIX = "/uploads/profile_pics/"


def validate_image(filename: Optional[str], content_type: Optional[str], size: int) -> str:
    """
    Check an uploaded image and return its lower-cased extension (with dot).

    Both the extension and the declared MIME type must be an allowed image type.
    """
    allowed = settings.ALLOWED_IMAGE_EXTENSIONS
    extension = Path(filename or "").suffix.lower().lstrip(".")
    allowed_mimes = {IMAGE_MIME_TYPES[ext] for ext in allowed if ext in IMAGE_MIME_TYPES}

    if extension not in allowed or (content_type or "").lower() not in allowed_mimes:
        raise InvalidFileTypeError(
            "Only image files (JPEG, JPG, PNG, WebP) are allowed for profile pictures",
            allowed_types=allowed,
        )

    if size > settings.MAX_PROFILE_PICTURE_SIZE:
        raise FileTooLargeError(settings.MAX_PROFILE_PICTURE_SIZE)

    return f".{extension}"


def profile_picture_filename(user_id: str, extension: str) -> str:
    """<user_id>-<timestamp>-<random><ext>"""
    timestamp = int(time.time() * 1000)
    return f"{user_id}-{timestamp}-{secrets.randbelow(10 ** 9)}{extension}"


async def save_profile_picture(user_id: str, file: UploadFile) -> str:
    """Validate and store an uploaded profile picture, returning its public URL"""
    content = await file.read()
    extension = validate_image(file.filename, file.content_type, len(content))

    filename = profile_picture_filename(user_id, extension)
    settings.PROFILE_PICS_DIR.mkdir(parents=True, exist_ok=True)
    path = settings.PROFILE_PICS_DIR / filename

    async with aiofiles.open(path, "wb") as f:
        await f.write(content)

    logger.info(f"[Uploads] Stored profile picture for user {user_id}: {filename} ({len(content)} bytes)")
    return f"{PROFILE_PICS_URL_PREFIX}{filename}"


async def delete_profile_picture(url: Optional[str]) -> bool:
    """Remove a previously stored picture; URLs outside the upload dir are ignored"""
    if not url or not url.startswith(PROFILE_PICS_URL_PREFIX):
        return False

    filename = Path(url[len(PROFILE_PICS_URL_PREFIX):]).name
    path = settings.PROFILE_PICS_DIR / filename
    if not path.exists():
        return False

    await aiofiles.os.remove(path)
    return True
