from uuid import UUID
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.models.like import Like


async def get_video_reaction(session: AsyncSession, user_id: UUID, video_id: UUID) -> Like | None:
    result = await session.execute(
        select(Like).where(Like.user_id == user_id, Like.video_id == video_id)
    )
    return result.scalars().one_or_none()


async def get_comment_reaction(session: AsyncSession, user_id: UUID, comment_id: UUID) -> Like | None:
    result = await session.execute(
        select(Like).where(Like.user_id == user_id, Like.comment_id == comment_id)
    )
    return result.scalars().one_or_none()


async def get_comment_reactions(session: AsyncSession, user_id: UUID, comment_ids: list[UUID]) -> dict[UUID, str]:
    """Map comment id -> reaction kind for the comments this user reacted to."""
    if not comment_ids:
        return {}
    result = await session.execute(
        select(Like.comment_id, Like.kind).where(Like.user_id == user_id, Like.comment_id.in_(comment_ids))
    )
    return {comment_id: kind for comment_id, kind in result.all()}


async def create_reaction(
    session: AsyncSession,
    user_id: UUID,
    kind: str,
    video_id: UUID | None = None,
    comment_id: UUID | None = None,
) -> Like:
    reaction = Like(user_id=user_id, video_id=video_id, comment_id=comment_id, kind=kind)
    session.add(reaction)
    await session.flush()
    return reaction


async def set_reaction_kind(session: AsyncSession, reaction: Like, kind: str) -> Like:
    reaction.kind = kind
    await session.flush()
    return reaction


async def delete_reaction(session: AsyncSession, reaction: Like) -> None:
    await session.delete(reaction)
    await session.flush()


async def list_reacted_targets(session: AsyncSession, user_id: UUID) -> tuple[list[UUID], list[UUID]]:
    """Video ids and comment ids this user has reacted to."""
    result = await session.execute(select(Like.video_id, Like.comment_id).where(Like.user_id == user_id))
    video_ids, comment_ids = [], []
    for video_id, comment_id in result.all():
        if video_id is not None:
            video_ids.append(video_id)
        if comment_id is not None:
            comment_ids.append(comment_id)
    return video_ids, comment_ids


async def delete_reactions_by_user(session: AsyncSession, user_id: UUID) -> None:
    await session.execute(delete(Like).where(Like.user_id == user_id).execution_options(synchronize_session=False))


async def delete_reactions_on_videos(session: AsyncSession, video_ids: list[UUID]) -> None:
    if video_ids:
        await session.execute(
            delete(Like).where(Like.video_id.in_(video_ids)).execution_options(synchronize_session=False)
        )


async def delete_reactions_on_comments(session: AsyncSession, comment_ids: list[UUID]) -> None:
    if comment_ids:
        await session.execute(
            delete(Like).where(Like.comment_id.in_(comment_ids)).execution_options(synchronize_session=False)
        )
