from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.repositories import subscription_repo, user_repo
from vidtube.errors import Conflict, NotFound, ValidationFailed
from vidtube.models.subscription import Subscription


async def subscribe(session: AsyncSession, subscriber_id: UUID, creator_id: UUID) -> Subscription:
    creator = await user_repo.get_user_by_id(session, creator_id)
    if not creator:
        raise NotFound("Creator not found")
    if subscriber_id == creator_id:
        raise ValidationFailed("You cannot subscribe to yourself")
    if await subscription_repo.get_subscription(session, subscriber_id, creator_id):
        raise Conflict("Already subscribed to this channel")
    try:
        subscription = await subscription_repo.create_subscription(session, subscriber_id, creator_id)
    except IntegrityError as e:
        # lost a race against an identical request
        raise Conflict("Already subscribed to this channel") from e
    await user_repo.adjust_subscriber_count(session, creator_id, 1)
    return subscription


async def unsubscribe(session: AsyncSession, subscriber_id: UUID, creator_id: UUID) -> None:
    # Only the request whose DELETE removed the row decrements the counter
    if not await subscription_repo.delete_subscription(session, subscriber_id, creator_id):
        raise NotFound("Subscription not found")
    await user_repo.adjust_subscriber_count(session, creator_id, -1)


async def is_subscribed(session: AsyncSession, subscriber_id: UUID, creator_id: UUID) -> bool:
    return await subscription_repo.get_subscription(session, subscriber_id, creator_id) is not None


async def list_subscriptions(session: AsyncSession, subscriber_id: UUID) -> list[Subscription]:
    return await subscription_repo.get_subscriptions_by_subscriber(session, subscriber_id)
