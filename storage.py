"""
Media storage on local disk

Files are moved from the upload temp area into MEDIA_DIR and served by the
static mount in main.py. The returned asset mirrors what a hosted media
service hands back: {public_id, url, secure_url, duration}.
"""
import json
import logging
import os
import shutil
import subprocess
import tempfile
import uuid
from typing import Optional

from fastapi import UploadFile

import config
from errors import UploadFailed

logger = logging.getLogger(__name__)

VIDEO = "video"
IMAGE = "image"


def probe_duration(path: str) -> Optional[float]:
    """Duration in seconds read with ffprobe, or None when it cannot be determined."""
    try:
        probe_out = subprocess.run(
            ["ffprobe", "-v", "quiet", "-print_format", "json", "-show_format", path],
            capture_output=True, text=True, timeout=30,
        )
        if probe_out.returncode != 0:
            return None
        probe = json.loads(probe_out.stdout)
        return float(probe["format"]["duration"])
    except (OSError, subprocess.SubprocessError, ValueError, KeyError) as e:
        logger.debug(f"ffprobe skipped: {e}")
        return None


async def save_upload_to_temp(file: Optional[UploadFile]) -> Optional[str]:
    """Write an incoming upload to a temp file and return its path."""
    if file is None or not file.filename:
        return None
    ext = os.path.splitext(file.filename)[1]
    fd, temp_path = tempfile.mkstemp(suffix=ext, prefix="upload_")
    with os.fdopen(fd, "wb") as f:
        f.write(await file.read())
    return temp_path


def upload_on_storage(local_path: str, resource_type: str = IMAGE) -> dict:
    """
    Move a local file into media storage.

    The local file is always removed, whether the upload succeeds or not.

    Raises:
        UploadFailed: if the file is missing or cannot be stored
    """
    if not local_path or not os.path.exists(local_path):
        raise UploadFailed("File to upload does not exist")

    ext = os.path.splitext(local_path)[1]
    public_id = f"{resource_type}/{uuid.uuid4().hex}{ext}"
    destination = os.path.join(config.MEDIA_DIR, public_id)
    duration = probe_duration(local_path) if resource_type == VIDEO else None

    try:
        os.makedirs(os.path.dirname(destination), exist_ok=True)
        shutil.move(local_path, destination)
    except OSError as e:
        logger.exception("Failed to store %s", local_path)
        raise UploadFailed(f"Failed to upload {resource_type} file") from e
    finally:
        if os.path.exists(local_path):
            os.remove(local_path)

    url = f"{config.MEDIA_URL_PREFIX}/{public_id}"
    logger.info("Stored %s as %s", resource_type, public_id)
    return {"public_id": public_id, "url": url, "secure_url": url, "duration": duration}


def delete_on_storage(public_id: Optional[str]) -> bool:
    """Remove a stored object. A missing object is not an error."""
    if not public_id:
        return False
    path = os.path.join(config.MEDIA_DIR, public_id)
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.exception("Failed to delete %s", public_id)
        raise UploadFailed("Failed to delete file from storage") from e
    logger.info("Deleted %s from storage", public_id)
    return True


def discard_temp(*paths: Optional[str]) -> None:
    for path in paths:
        if path and os.path.exists(path):
            os.remove(path)
