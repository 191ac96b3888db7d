from uuid import UUID
from sqlalchemy import select, update, case
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.models.user import User


async def get_user_by_id(session: AsyncSession, user_id: UUID) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalars().one_or_none()


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalars().one_or_none()


async def username_taken(session: AsyncSession, username: str, exclude_user_id: UUID | None = None) -> bool:
    q = select(User.id).where(User.username == username)
    if exclude_user_id is not None:
        q = q.where(User.id != exclude_user_id)
    result = await session.execute(q.limit(1))
    return result.scalars().first() is not None


async def create_user(
    session: AsyncSession,
    username: str,
    password_hash: str,
    email: str | None = None,
    bio: str = "",
) -> User:
    user = User(username=username, password_hash=password_hash, email=email, bio=bio)
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


async def update_profile(
    session: AsyncSession,
    user: User,
    username: str | None = None,
    bio: str | None = None,
    avatar: str | None = None,
) -> User:
    if username is not None:
        user.username = username
    if bio is not None:
        user.bio = bio
    if avatar is not None:
        user.avatar = avatar
    await session.flush()
    await session.refresh(user)
    return user


async def set_password_hash(session: AsyncSession, user: User, password_hash: str) -> None:
    user.password_hash = password_hash
    await session.flush()


async def adjust_subscriber_count(session: AsyncSession, user_id: UUID, delta: int) -> None:
    """Single-statement increment/decrement; never goes below zero."""
    if delta >= 0:
        value = User.subscriber_count + delta
    else:
        value = case(
            (User.subscriber_count + delta > 0, User.subscriber_count + delta),
            else_=0,
        )
    await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(subscriber_count=value)
        .execution_options(synchronize_session=False)
    )


async def delete_user(session: AsyncSession, user: User) -> None:
    await session.delete(user)
    await session.flush()
