from datetime import datetime
from typing import Literal
from uuid import UUID
from pydantic import BaseModel, Field

from vidtube.models.video import VideoCategory
from vidtube.schemas.user import CreatorSummary


class VideoResponse(BaseModel):
    id: UUID
    title: str
    description: str
    file_name: str
    thumbnail: str
    duration: int
    views: int
    likes: int
    dislikes: int
    category: str
    is_private: bool
    creator: CreatorSummary
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VideoDetailResponse(VideoResponse):
    is_liked: bool | None = None
    is_disliked: bool | None = None


class VideoUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=5000)
    category: VideoCategory | None = None
    is_private: bool | None = None


class ReactionRequest(BaseModel):
    status: Literal["like", "dislike"] | None = None


class ReactionResponse(BaseModel):
    likes: int
    dislikes: int
    status: str | None = None


class ReactionStatusResponse(BaseModel):
    status: str | None = None
