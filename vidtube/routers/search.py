from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.repositories import video_repo
from vidtube.db.session import get_db
from vidtube.schemas.video import VideoResponse

router = APIRouter()


@router.get("", response_model=list[VideoResponse])
async def search(q: str | None = None, db: AsyncSession = Depends(get_db)):
    """Public videos whose title or description contains ``q`` (case-insensitive)."""
    if not q or not q.strip():
        return []
    return await video_repo.search_public_videos(db, q.strip(), limit=20)
