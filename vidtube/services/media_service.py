import asyncio
import os
import logging

import ffmpeg

from vidtube.config import settings
from vidtube.errors import MediaProbeFailed
from vidtube.services.upload_service import THUMBNAILS, storage_dir, storage_name

logger = logging.getLogger(__name__)


def _probe_duration(video_path: str) -> int:
    probe = ffmpeg.probe(video_path)
    fmt = probe.get("format", {})
    duration = float(fmt.get("duration", 0.0) or 0.0)
    if duration <= 0:
        for stream in probe.get("streams", []):
            if stream.get("codec_type") == "video":
                duration = float(stream.get("duration", 0.0) or 0.0)
                if duration > 0:
                    break
    return max(0, int(round(duration)))


async def probe_duration(video_path: str) -> int:
    """Duration of a stored video in whole seconds. Unreadable media raises MediaProbeFailed."""
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, _probe_duration, video_path)
    except ffmpeg.Error as e:
        stderr = e.stderr.decode(errors="replace") if e.stderr else str(e)
        logger.error(f"ffprobe failed for {video_path}: {stderr}")
        raise MediaProbeFailed("Could not read video metadata") from e
    except (OSError, ValueError) as e:
        logger.error(f"Could not probe video duration for {video_path}: {e}")
        raise MediaProbeFailed("Could not read video metadata") from e


def _grab_frame(video_path: str, output_path: str) -> None:
    width, height = settings.thumbnail_size.split("x")
    (
        ffmpeg
        .input(video_path, ss=settings.thumbnail_offset_seconds)
        .filter("scale", int(width), int(height))
        .output(output_path, vframes=1)
        .overwrite_output()
        .run(quiet=True)
    )


async def generate_thumbnail(video_path: str) -> str:
    """
    Sample one frame of the video as its thumbnail.

    Returns the thumbnail filename, or ``""`` when no frame could be written;
    a missing thumbnail never fails the upload.
    """
    filename = storage_name("thumbnail.jpg")
    output_path = os.path.join(storage_dir(THUMBNAILS), filename)
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, _grab_frame, video_path, output_path)
    except ffmpeg.Error as e:
        stderr = e.stderr.decode(errors="replace") if e.stderr else str(e)
        logger.warning(f"Thumbnail generation failed for {video_path}: {stderr}")
        return ""
    except (OSError, ValueError) as e:
        logger.warning(f"Thumbnail generation failed for {video_path}: {e}")
        return ""
    if not os.path.exists(output_path):
        logger.warning(f"ffmpeg produced no thumbnail for {video_path}")
        return ""
    return filename
