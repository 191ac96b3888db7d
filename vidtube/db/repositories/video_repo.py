from uuid import UUID
from sqlalchemy import select, update, or_, case
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.models.video import Video, VideoCategory
from vidtube.models.like import ReactionKind


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def get_video_by_id(session: AsyncSession, video_id: UUID) -> Video | None:
    result = await session.execute(select(Video).where(Video.id == video_id))
    return result.scalars().one_or_none()


async def get_video_for_update(session: AsyncSession, video_id: UUID) -> Video | None:
    """Load a video and hold its row lock until the transaction ends."""
    result = await session.execute(
        select(Video)
        .where(Video.id == video_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalars().one_or_none()


async def list_public_videos(
    session: AsyncSession,
    offset: int = 0,
    limit: int = 20,
    category: str | None = None,
) -> list[Video]:
    q = select(Video).where(Video.is_private.is_(False))
    if category is not None:
        q = q.where(Video.category == category)
    result = await session.execute(q.order_by(Video.created_at.desc()).offset(offset).limit(limit))
    return list(result.scalars().all())


async def list_public_videos_by_creator(session: AsyncSession, creator_id: UUID) -> list[Video]:
    result = await session.execute(
        select(Video)
        .where(Video.creator_id == creator_id, Video.is_private.is_(False))
        .order_by(Video.created_at.desc())
    )
    return list(result.scalars().all())


async def list_videos_by_creator(session: AsyncSession, creator_id: UUID) -> list[Video]:
    result = await session.execute(select(Video).where(Video.creator_id == creator_id))
    return list(result.scalars().all())


async def list_public_videos_by_creators(
    session: AsyncSession, creator_ids: list[UUID], limit: int = 50
) -> list[Video]:
    if not creator_ids:
        return []
    result = await session.execute(
        select(Video)
        .where(Video.creator_id.in_(creator_ids), Video.is_private.is_(False))
        .order_by(Video.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_related_videos(session: AsyncSession, video: Video, limit: int = 10) -> list[Video]:
    # An uncategorised video matches every category, so the category branch
    # then selects all public videos.
    if video.category and video.category != VideoCategory.none.value:
        category_clause = Video.category == video.category
    else:
        category_clause = Video.category.is_not(None)
    result = await session.execute(
        select(Video)
        .where(
            Video.id != video.id,
            Video.is_private.is_(False),
            or_(category_clause, Video.creator_id == video.creator_id),
        )
        .order_by(Video.views.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def search_public_videos(session: AsyncSession, term: str, limit: int = 20) -> list[Video]:
    pattern = f"%{escape_like(term)}%"
    result = await session.execute(
        select(Video)
        .where(
            Video.is_private.is_(False),
            or_(
                Video.title.ilike(pattern, escape="\\"),
                Video.description.ilike(pattern, escape="\\"),
            ),
        )
        .order_by(Video.views.desc(), Video.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def create_video(
    session: AsyncSession,
    creator_id: UUID,
    title: str,
    file_name: str,
    thumbnail: str = "",
    duration: int = 0,
    description: str = "",
    category: str = "",
) -> Video:
    video = Video(
        creator_id=creator_id,
        title=title,
        description=description,
        file_name=file_name,
        thumbnail=thumbnail,
        duration=duration,
        category=category,
    )
    session.add(video)
    await session.flush()
    await session.refresh(video)
    return video


async def update_video(
    session: AsyncSession,
    video: Video,
    title: str | None = None,
    description: str | None = None,
    category: str | None = None,
    is_private: bool | None = None,
) -> Video:
    if title is not None:
        video.title = title
    if description is not None:
        video.description = description
    if category is not None:
        video.category = category
    if is_private is not None:
        video.is_private = is_private
    await session.flush()
    await session.refresh(video)
    return video


async def increment_views(session: AsyncSession, video: Video) -> Video:
    await session.execute(
        update(Video)
        .where(Video.id == video.id)
        .values(views=Video.views + 1)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(video)
    return video


def _counter_value(column, delta: int):
    if delta >= 0:
        return column + delta
    return case((column + delta > 0, column + delta), else_=0)


async def adjust_reaction_counters(session: AsyncSession, video_id: UUID, deltas: dict[str, int]) -> None:
    """Apply ``{"like": +1, "dislike": -1}`` style deltas in one UPDATE, floored at zero."""
    values = {}
    if deltas.get(ReactionKind.like.value):
        values["likes"] = _counter_value(Video.likes, deltas[ReactionKind.like.value])
    if deltas.get(ReactionKind.dislike.value):
        values["dislikes"] = _counter_value(Video.dislikes, deltas[ReactionKind.dislike.value])
    if not values:
        return
    await session.execute(
        update(Video)
        .where(Video.id == video_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


async def get_reaction_counters(session: AsyncSession, video_id: UUID) -> tuple[int, int]:
    result = await session.execute(select(Video.likes, Video.dislikes).where(Video.id == video_id))
    likes, dislikes = result.one()
    return likes, dislikes


async def delete_video(session: AsyncSession, video: Video) -> None:
    await session.delete(video)
    await session.flush()
