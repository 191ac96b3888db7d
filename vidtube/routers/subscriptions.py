from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.session import get_db
from vidtube.dependencies import get_current_user
from vidtube.models.user import User
from vidtube.schemas.common import MessageResponse
from vidtube.schemas.subscription import (
    SubscribeRequest,
    SubscribeResponse,
    SubscriptionCheckResponse,
    SubscriptionResponse,
    SubscriptionWithCreator,
)
from vidtube.services import subscription_service

router = APIRouter()


@router.post("", response_model=SubscribeResponse, status_code=status.HTTP_201_CREATED)
async def subscribe(
    body: SubscribeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if body.creator_id is None:
        raise HTTPException(status_code=400, detail="Creator ID is required")
    subscription = await subscription_service.subscribe(db, current_user.id, body.creator_id)
    await db.commit()
    return SubscribeResponse(
        message="Subscribed successfully",
        subscription=SubscriptionResponse.model_validate(subscription),
    )


@router.get("", response_model=list[SubscriptionWithCreator])
async def list_subscriptions(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await subscription_service.list_subscriptions(db, current_user.id)


@router.get("/check/{creator_id}", response_model=SubscriptionCheckResponse)
async def check_subscription(
    creator_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subscribed = await subscription_service.is_subscribed(db, current_user.id, creator_id)
    return SubscriptionCheckResponse(is_subscribed=subscribed)


@router.delete("/{creator_id}", response_model=MessageResponse)
async def unsubscribe(
    creator_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await subscription_service.unsubscribe(db, current_user.id, creator_id)
    await db.commit()
    return MessageResponse(message="Unsubscribed successfully")
