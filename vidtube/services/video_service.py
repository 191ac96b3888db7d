import asyncio
import logging
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.repositories import video_repo, comment_repo, like_repo, history_repo
from vidtube.models.video import Video
from vidtube.services import media_service, upload_service
from vidtube.services.upload_service import VIDEOS, THUMBNAILS

logger = logging.getLogger(__name__)


async def create_from_upload(
    session: AsyncSession,
    creator_id: UUID,
    title: str,
    video_file: UploadFile | None,
    thumbnail_file: UploadFile | None,
    description: str = "",
    category: str = "",
    extra_fields: list[str] | None = None,
) -> Video:
    """
    Store the uploaded blobs, probe the video and create its row.

    Nothing is written to the database until the blobs are stored and the
    duration is known; on any failure the stored blobs are removed.
    """
    stored = await upload_service.save_video_with_thumbnail(video_file, thumbnail_file, extra_fields)
    video_path = upload_service.blob_path(VIDEOS, stored.video)
    generated_thumbnail = ""
    try:
        duration = await media_service.probe_duration(video_path)
        thumbnail = stored.thumbnail
        if not thumbnail:
            generated_thumbnail = await media_service.generate_thumbnail(video_path)
            thumbnail = generated_thumbnail
        video = await video_repo.create_video(
            session,
            creator_id=creator_id,
            title=title,
            description=description,
            file_name=stored.video,
            thumbnail=thumbnail,
            duration=duration,
            category=category,
        )
    except (Exception, asyncio.CancelledError):
        stored.discard()
        upload_service.delete_blob(THUMBNAILS, generated_thumbnail)
        raise
    logger.info(f"User {creator_id} uploaded video {video.id} ({duration}s)")
    return video


async def delete_videos(session: AsyncSession, videos: list[Video]) -> list[tuple[str, str]]:
    """
    Delete videos with their comments, reactions and history rows.

    Returns the ``(kind, filename)`` blobs the videos used; callers remove them
    with ``upload_service.delete_blobs`` once the transaction has committed.
    """
    if not videos:
        return []
    video_ids = [v.id for v in videos]
    comment_ids = await comment_repo.list_comment_ids_by_videos(session, video_ids)
    await like_repo.delete_reactions_on_comments(session, comment_ids)
    await comment_repo.delete_comments(session, comment_ids)
    await like_repo.delete_reactions_on_videos(session, video_ids)
    await history_repo.delete_history_for_videos(session, video_ids)
    blobs = []
    for video in videos:
        blobs.append((VIDEOS, video.file_name))
        if video.thumbnail:
            blobs.append((THUMBNAILS, video.thumbnail))
        await video_repo.delete_video(session, video)
    return blobs
