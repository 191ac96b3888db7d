"""
Upload intake: type/size checks for multipart file parts and blob storage
under ``settings.upload_dir``.

Blobs are written to ``<upload_dir>/<kind>/<storage name>``. A blob is never
left behind when a part is rejected or the copy is interrupted.
"""
import asyncio
import os
import random
import time
import logging
from dataclasses import dataclass

import aiofiles
from fastapi import UploadFile

from vidtube.config import settings
from vidtube.errors import UploadRejected

logger = logging.getLogger(__name__)

VIDEO_TYPES = {"video/mp4", "video/webm", "video/ogg", "video/quicktime"}
IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

VIDEOS = "videos"
THUMBNAILS = "thumbnails"
AVATARS = "avatars"

COPY_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class UploadRule:
    kind: str  # storage directory
    allowed_types: frozenset[str]
    max_bytes_setting: str
    type_error: str

    @property
    def max_bytes(self) -> int:
        return getattr(settings, self.max_bytes_setting)


RULES = {
    "video": UploadRule(
        VIDEOS, frozenset(VIDEO_TYPES), "max_video_bytes",
        "Invalid file type. Only video files are allowed.",
    ),
    "thumbnail": UploadRule(
        THUMBNAILS, frozenset(IMAGE_TYPES), "max_thumbnail_bytes",
        "Invalid file type. Only image files are allowed.",
    ),
    "avatar": UploadRule(
        AVATARS, frozenset(IMAGE_TYPES), "max_avatar_bytes",
        "Invalid file type. Only image files are allowed.",
    ),
}


def storage_dir(kind: str) -> str:
    path = os.path.join(settings.upload_dir, kind)
    os.makedirs(path, exist_ok=True)
    return path


def blob_path(kind: str, filename: str) -> str:
    return os.path.join(settings.upload_dir, kind, os.path.basename(filename))


def storage_name(original_filename: str | None) -> str:
    """``<ms-time>-<random>.<ext>``: unlikely to collide, not guaranteed unique."""
    ext = os.path.splitext(os.path.basename(original_filename or ""))[1]
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


def delete_blob(kind: str, filename: str | None) -> None:
    if not filename:
        return
    path = blob_path(kind, filename)
    try:
        os.remove(path)
        logger.info(f"Deleted blob {path}")
    except FileNotFoundError:
        logger.debug(f"Blob already gone: {path}")
    except OSError as e:
        logger.error(f"Failed to delete blob {path}: {e}")


def delete_blobs(blobs: list[tuple[str, str]]) -> None:
    for kind, filename in blobs:
        delete_blob(kind, filename)


def validate_part(field: str, upload: UploadFile) -> UploadRule:
    rule = RULES.get(field)
    if rule is None:
        raise UploadRejected("Unexpected field")
    if upload.content_type not in rule.allowed_types:
        raise UploadRejected(rule.type_error)
    declared = getattr(upload, "size", None)
    if declared is not None and declared > rule.max_bytes:
        raise UploadRejected("File is too large")
    return rule


async def save_upload(field: str, upload: UploadFile) -> str:
    """Validate and persist one file part; returns the storage name."""
    rule = validate_part(field, upload)
    filename = storage_name(upload.filename)
    path = os.path.join(storage_dir(rule.kind), filename)
    written = 0
    try:
        async with aiofiles.open(path, "wb") as out:
            while True:
                chunk = await upload.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > rule.max_bytes:
                    raise UploadRejected("File is too large")
                await out.write(chunk)
    except (Exception, asyncio.CancelledError):
        delete_blob(rule.kind, filename)
        raise
    logger.info(f"Stored {field} upload as {path} ({written} bytes)")
    return filename


@dataclass
class StoredVideoUpload:
    video: str
    thumbnail: str | None = None

    def discard(self) -> None:
        delete_blob(VIDEOS, self.video)
        if self.thumbnail:
            delete_blob(THUMBNAILS, self.thumbnail)


async def save_video_with_thumbnail(
    video: UploadFile | None,
    thumbnail: UploadFile | None,
    extra_fields: list[str] | None = None,
) -> StoredVideoUpload:
    """
    Persist the parts of the combined upload form. Both parts are validated
    before anything is written; if the second write fails the first blob is
    removed again.
    """
    if extra_fields:
        raise UploadRejected("Unexpected field")
    if video is None:
        raise UploadRejected("Video file is required")
    validate_part("video", video)
    if thumbnail is not None:
        validate_part("thumbnail", thumbnail)

    stored = StoredVideoUpload(video=await save_upload("video", video))
    if thumbnail is not None:
        try:
            stored.thumbnail = await save_upload("thumbnail", thumbnail)
        except (Exception, asyncio.CancelledError):
            stored.discard()
            raise
    return stored
