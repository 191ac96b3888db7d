import logging
import os
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import FileResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile as FormFile

from vidtube.config import settings
from vidtube.db.repositories import comment_repo, like_repo, subscription_repo, video_repo
from vidtube.db.session import get_db
from vidtube.dependencies import get_current_user, get_optional_user
from vidtube.models.like import ReactionKind
from vidtube.models.user import User
from vidtube.models.video import Video, VideoCategory
from vidtube.schemas.comment import CommentCreate, CommentResponse
from vidtube.schemas.common import MessageResponse
from vidtube.schemas.video import (
    ReactionRequest,
    ReactionResponse,
    ReactionStatusResponse,
    VideoDetailResponse,
    VideoResponse,
    VideoUpdate,
)
from vidtube.services import reaction_service, upload_service, video_service
from vidtube.services.streaming import iter_file, parse_range
from vidtube.services.upload_service import THUMBNAILS, VIDEOS

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_FIELDS = ("video", "thumbnail")
CATEGORIES = {c.value for c in VideoCategory}


async def _get_video_or_404(db: AsyncSession, video_id: UUID) -> Video:
    video = await video_repo.get_video_by_id(db, video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    return video


async def _get_owned_video(db: AsyncSession, video_id: UUID, user: User) -> Video:
    video = await _get_video_or_404(db, video_id)
    if video.creator_id != user.id:
        raise HTTPException(status_code=403, detail="Not authorized to modify this video")
    return video


def _unexpected_file_fields(form) -> list[str]:
    seen: dict[str, int] = {}
    unexpected = []
    for key, value in form.multi_items():
        if not isinstance(value, FormFile):
            continue
        seen[key] = seen.get(key, 0) + 1
        if key not in UPLOAD_FIELDS or seen[key] > 1:
            unexpected.append(key)
    return unexpected


@router.post("/upload", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def upload_video(
    request: Request,
    title: str | None = Form(default=None),
    description: str = Form(default=""),
    category: str = Form(default=""),
    video: UploadFile | None = File(default=None),
    thumbnail: UploadFile | None = File(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not title or not title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if len(title.strip()) > 100:
        raise HTTPException(status_code=400, detail="Title must be at most 100 characters")
    if len(description) > 5000:
        raise HTTPException(status_code=400, detail="Description must be at most 5000 characters")
    if category not in CATEGORIES:
        raise HTTPException(status_code=400, detail="Invalid category")

    form = await request.form()
    created = await video_service.create_from_upload(
        db,
        creator_id=current_user.id,
        title=title.strip(),
        description=description.strip(),
        category=category,
        video_file=video,
        thumbnail_file=thumbnail,
        extra_fields=_unexpected_file_fields(form),
    )
    blobs = [(VIDEOS, created.file_name), (THUMBNAILS, created.thumbnail)]
    try:
        await db.commit()
    except Exception:
        upload_service.delete_blobs(blobs)
        raise
    return created


@router.get("", response_model=list[VideoResponse])
async def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    category_filter = category if category and category != "All" else None
    return await video_repo.list_public_videos(
        db, offset=(page - 1) * limit, limit=limit, category=category_filter
    )


@router.get("/subscriptions", response_model=list[VideoResponse])
async def subscription_feed(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    creator_ids = await subscription_repo.get_creator_ids(db, current_user.id)
    return await video_repo.list_public_videos_by_creators(db, creator_ids, limit=50)


@router.get("/user/{user_id}", response_model=list[VideoResponse])
async def list_user_videos(user_id: UUID, db: AsyncSession = Depends(get_db)):
    return await video_repo.list_public_videos_by_creator(db, user_id)


@router.get("/related/{video_id}", response_model=list[VideoResponse])
async def related_videos(video_id: UUID, db: AsyncSession = Depends(get_db)):
    video = await _get_video_or_404(db, video_id)
    return await video_repo.list_related_videos(db, video, limit=10)


@router.get("/{video_id}", response_model=VideoDetailResponse)
async def get_video(
    video_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    video = await _get_video_or_404(db, video_id)
    video = await video_repo.increment_views(db, video)
    reaction = None
    if current_user is not None:
        reaction = await reaction_service.get_video_reaction_status(db, video.id, current_user.id)
    await db.commit()

    response = VideoDetailResponse.model_validate(video)
    if current_user is not None:
        response.is_liked = reaction == ReactionKind.like.value
        response.is_disliked = reaction == ReactionKind.dislike.value
    return response


@router.put("/{video_id}", response_model=VideoResponse)
async def update_video(
    video_id: UUID,
    body: VideoUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    video = await _get_owned_video(db, video_id, current_user)
    video = await video_repo.update_video(
        db,
        video,
        title=body.title.strip() if body.title else None,
        description=body.description,
        category=body.category.value if body.category is not None else None,
        is_private=body.is_private,
    )
    await db.commit()
    return video


@router.delete("/{video_id}", response_model=MessageResponse)
async def delete_video(
    video_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    video = await _get_owned_video(db, video_id, current_user)
    blobs = await video_service.delete_videos(db, [video])
    await db.commit()
    upload_service.delete_blobs(blobs)
    return MessageResponse(message="Video deleted successfully")


@router.get("/{video_id}/stream")
async def stream_video(
    video_id: UUID,
    range_header: str | None = Header(default=None, alias="range"),
    db: AsyncSession = Depends(get_db),
):
    video = await _get_video_or_404(db, video_id)
    path = upload_service.blob_path(VIDEOS, video.file_name)
    try:
        size = os.stat(path).st_size
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Video file not found")

    chunk_size = settings.stream_chunk_size
    if range_header is None:
        return StreamingResponse(
            iter_file(path, 0, size - 1, chunk_size),
            status_code=200,
            media_type="video/mp4",
            headers={"Content-Length": str(size), "Accept-Ranges": "bytes"},
        )

    start, end = parse_range(range_header, size)
    return StreamingResponse(
        iter_file(path, start, end, chunk_size),
        status_code=206,
        media_type="video/mp4",
        headers={
            "Content-Range": f"bytes {start}-{end}/{size}",
            "Accept-Ranges": "bytes",
            "Content-Length": str(end - start + 1),
        },
    )


@router.get("/{video_id}/thumbnail")
async def get_thumbnail(video_id: UUID, db: AsyncSession = Depends(get_db)):
    video = await _get_video_or_404(db, video_id)
    if video.thumbnail:
        path = upload_service.blob_path(THUMBNAILS, video.thumbnail)
        if os.path.isfile(path):
            return FileResponse(path)
    default = os.path.join(settings.upload_dir, "default-thumbnail.jpg")
    if not os.path.isfile(default):
        raise HTTPException(status_code=404, detail="Thumbnail not found")
    return FileResponse(default)


@router.post("/{video_id}/like", response_model=ReactionResponse)
async def react_to_video(
    video_id: UUID,
    body: ReactionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await reaction_service.set_video_reaction(db, video_id, current_user.id, body.status)
    await db.commit()
    return ReactionResponse(likes=result.likes, dislikes=result.dislikes, status=result.status)


@router.get("/{video_id}/like/status", response_model=ReactionStatusResponse)
async def reaction_status(
    video_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ReactionStatusResponse(
        status=await reaction_service.get_video_reaction_status(db, video_id, current_user.id)
    )


@router.get("/{video_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    video_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    comments = await comment_repo.get_comments_by_video(db, video_id)
    response = [CommentResponse.model_validate(c) for c in comments]
    if current_user is not None:
        reactions = await like_repo.get_comment_reactions(db, current_user.id, [c.id for c in comments])
        for item in response:
            item.is_liked = reactions.get(item.id) == ReactionKind.like.value
    return response


@router.post("/{video_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    video_id: UUID,
    body: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    video = await _get_video_or_404(db, video_id)
    if not body.content or not body.content.strip():
        raise HTTPException(status_code=400, detail="Comment content is required")
    comment = await comment_repo.create_comment(db, video.id, current_user.id, body.content)
    await db.commit()
    return comment
