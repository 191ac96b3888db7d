from datetime import datetime
from uuid import UUID
from pydantic import BaseModel

from vidtube.schemas.video import VideoResponse


class HistoryCreate(BaseModel):
    video_id: UUID | None = None


class HistoryResponse(BaseModel):
    id: UUID
    user_id: UUID
    video_id: UUID
    watched_at: datetime

    class Config:
        from_attributes = True


class HistoryWithVideo(HistoryResponse):
    video: VideoResponse
