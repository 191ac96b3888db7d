from datetime import datetime
from uuid import UUID
from pydantic import BaseModel


class CreatorSummary(BaseModel):
    id: UUID
    username: str
    subscriber_count: int = 0
    avatar: str = ""

    class Config:
        from_attributes = True


class PublicProfile(BaseModel):
    id: UUID
    username: str
    avatar: str
    bio: str
    subscriber_count: int
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileResponse(PublicProfile):
    email: str | None = None
    updated_at: datetime


class PasswordUpdate(BaseModel):
    current_password: str | None = None
    new_password: str | None = None
