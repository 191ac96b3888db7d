from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.repositories import history_repo, video_repo
from vidtube.db.session import get_db
from vidtube.dependencies import get_current_user
from vidtube.models.user import User
from vidtube.schemas.common import MessageResponse
from vidtube.schemas.history import HistoryCreate, HistoryResponse, HistoryWithVideo

router = APIRouter()


@router.post("", response_model=HistoryResponse, status_code=status.HTTP_201_CREATED)
async def add_to_history(
    body: HistoryCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if body.video_id is None:
        raise HTTPException(status_code=400, detail="Video ID is required")
    if not await video_repo.get_video_by_id(db, body.video_id):
        raise HTTPException(status_code=404, detail="Video not found")
    entry, created = await history_repo.record_view(db, current_user.id, body.video_id)
    await db.commit()
    if not created:
        response.status_code = status.HTTP_200_OK
    return entry


@router.get("", response_model=list[HistoryWithVideo])
async def get_history(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await history_repo.list_history(db, current_user.id)


@router.delete("", response_model=MessageResponse)
async def clear_history(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await history_repo.clear_history(db, current_user.id)
    await db.commit()
    return MessageResponse(message="Watch history cleared successfully")


@router.delete("/{video_id}", response_model=MessageResponse)
async def remove_from_history(
    video_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await history_repo.remove_from_history(db, current_user.id, video_id)
    await db.commit()
    return MessageResponse(message="Video removed from history")
