from datetime import datetime
from uuid import UUID
from pydantic import BaseModel

from vidtube.schemas.user import CreatorSummary


class SubscribeRequest(BaseModel):
    creator_id: UUID | None = None


class SubscriptionResponse(BaseModel):
    id: UUID
    subscriber_id: UUID
    creator_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


class SubscriptionWithCreator(SubscriptionResponse):
    creator: CreatorSummary


class SubscribeResponse(BaseModel):
    message: str
    subscription: SubscriptionResponse


class SubscriptionCheckResponse(BaseModel):
    is_subscribed: bool
