from datetime import datetime
from typing import Literal
from uuid import UUID
from pydantic import BaseModel

from vidtube.schemas.user import CreatorSummary


class CommentCreate(BaseModel):
    content: str | None = None


class CommentUpdate(BaseModel):
    content: str | None = None


class CommentResponse(BaseModel):
    id: UUID
    video_id: UUID
    user: CreatorSummary
    content: str
    likes: int
    edited: bool
    created_at: datetime
    updated_at: datetime
    is_liked: bool | None = None

    class Config:
        from_attributes = True


class CommentLikeRequest(BaseModel):
    action: Literal["like", "unlike"]


class CommentLikeResponse(BaseModel):
    likes: int
