from datetime import datetime, timezone
from uuid import UUID
from sqlalchemy import select, delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.models.history import History


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"History upsert is not supported on {dialect}")


async def get_entry(session: AsyncSession, user_id: UUID, video_id: UUID) -> History | None:
    result = await session.execute(
        select(History).where(History.user_id == user_id, History.video_id == video_id)
    )
    return result.scalars().one_or_none()


async def record_view(session: AsyncSession, user_id: UUID, video_id: UUID) -> tuple[History, bool]:
    """Insert a history entry or bump its ``watched_at``. Returns ``(entry, created)``."""
    created = await get_entry(session, user_id, video_id) is None
    now = datetime.now(timezone.utc)
    insert = _insert_for(session)
    stmt = insert(History).values(user_id=user_id, video_id=video_id, watched_at=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=[History.user_id, History.video_id],
        set_={"watched_at": now},
    )
    await session.execute(stmt)
    result = await session.execute(
        select(History)
        .where(History.user_id == user_id, History.video_id == video_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().one(), created


async def list_history(session: AsyncSession, user_id: UUID) -> list[History]:
    result = await session.execute(
        select(History).where(History.user_id == user_id).order_by(History.watched_at.desc())
    )
    return list(result.scalars().all())


async def clear_history(session: AsyncSession, user_id: UUID) -> None:
    await session.execute(
        delete(History).where(History.user_id == user_id).execution_options(synchronize_session=False)
    )


async def remove_from_history(session: AsyncSession, user_id: UUID, video_id: UUID) -> None:
    await session.execute(
        delete(History)
        .where(History.user_id == user_id, History.video_id == video_id)
        .execution_options(synchronize_session=False)
    )


async def delete_history_for_videos(session: AsyncSession, video_ids: list[UUID]) -> None:
    if video_ids:
        await session.execute(
            delete(History).where(History.video_id.in_(video_ids)).execution_options(synchronize_session=False)
        )
