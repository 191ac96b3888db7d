from uuid import UUID
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.models.subscription import Subscription


async def get_subscription(session: AsyncSession, subscriber_id: UUID, creator_id: UUID) -> Subscription | None:
    result = await session.execute(
        select(Subscription).where(
            Subscription.subscriber_id == subscriber_id,
            Subscription.creator_id == creator_id,
        )
    )
    return result.scalars().one_or_none()


async def get_subscriptions_by_subscriber(session: AsyncSession, subscriber_id: UUID) -> list[Subscription]:
    result = await session.execute(
        select(Subscription)
        .where(Subscription.subscriber_id == subscriber_id)
        .order_by(Subscription.created_at.desc())
    )
    return list(result.scalars().all())


async def get_creator_ids(session: AsyncSession, subscriber_id: UUID) -> list[UUID]:
    result = await session.execute(
        select(Subscription.creator_id).where(Subscription.subscriber_id == subscriber_id)
    )
    return list(result.scalars().all())


async def create_subscription(session: AsyncSession, subscriber_id: UUID, creator_id: UUID) -> Subscription:
    subscription = Subscription(subscriber_id=subscriber_id, creator_id=creator_id)
    session.add(subscription)
    await session.flush()
    await session.refresh(subscription)
    return subscription


async def delete_subscription(session: AsyncSession, subscriber_id: UUID, creator_id: UUID) -> bool:
    """Delete one subscription; ``False`` when it was already gone."""
    result = await session.execute(
        delete(Subscription)
        .where(
            Subscription.subscriber_id == subscriber_id,
            Subscription.creator_id == creator_id,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def delete_subscribers_of(session: AsyncSession, creator_id: UUID) -> None:
    await session.execute(
        delete(Subscription)
        .where(Subscription.creator_id == creator_id)
        .execution_options(synchronize_session=False)
    )
