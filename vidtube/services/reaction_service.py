"""
Reaction ledger for videos and comments.

The ``likes`` table is the source of truth; ``videos.likes``/``videos.dislikes``
and ``comments.likes`` are a cache of it. Every change locks the target row
first, so concurrent requests on the same target are applied one after the
other, and counters are only ever changed by single-statement increments.
The ``reconcile_*`` functions rebuild the caches from the ledger.
"""
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.repositories import video_repo, comment_repo, like_repo
from vidtube.errors import Conflict, NotFound
from vidtube.models.comment import Comment
from vidtube.models.like import Like, ReactionKind
from vidtube.models.subscription import Subscription
from vidtube.models.user import User
from vidtube.models.video import Video

logger = logging.getLogger(__name__)


@dataclass
class VideoReactionResult:
    likes: int
    dislikes: int
    status: str | None


async def set_video_reaction(
    session: AsyncSession, video_id: UUID, user_id: UUID, kind: str | None
) -> VideoReactionResult:
    video = await video_repo.get_video_for_update(session, video_id)
    if not video:
        raise NotFound("Video not found")

    existing = await like_repo.get_video_reaction(session, user_id, video_id)
    deltas: dict[str, int] = {}
    if existing is None:
        if kind is not None:
            try:
                await like_repo.create_reaction(session, user_id, kind, video_id=video_id)
            except IntegrityError as e:
                raise Conflict("Reaction already recorded") from e
            deltas[kind] = 1
    elif kind is None:
        deltas[existing.kind] = -1
        await like_repo.delete_reaction(session, existing)
    elif kind != existing.kind:
        deltas[existing.kind] = -1
        deltas[kind] = 1
        await like_repo.set_reaction_kind(session, existing, kind)

    if deltas:
        await video_repo.adjust_reaction_counters(session, video_id, deltas)
        logger.debug(f"Video {video_id} reaction by {user_id}: {deltas}")
    likes, dislikes = await video_repo.get_reaction_counters(session, video_id)
    return VideoReactionResult(likes=likes, dislikes=dislikes, status=kind)


async def get_video_reaction_status(session: AsyncSession, video_id: UUID, user_id: UUID) -> str | None:
    reaction = await like_repo.get_video_reaction(session, user_id, video_id)
    return reaction.kind if reaction else None


async def set_comment_reaction(session: AsyncSession, comment_id: UUID, user_id: UUID, liked: bool) -> int:
    """Like or unlike a comment; returns the comment's like count."""
    comment = await comment_repo.get_comment_for_update(session, comment_id)
    if not comment:
        raise NotFound("Comment not found")

    existing = await like_repo.get_comment_reaction(session, user_id, comment_id)
    if liked and existing is None:
        try:
            await like_repo.create_reaction(session, user_id, ReactionKind.like.value, comment_id=comment_id)
        except IntegrityError as e:
            raise Conflict("Reaction already recorded") from e
        await comment_repo.adjust_likes(session, comment_id, 1)
    elif not liked and existing is not None:
        await like_repo.delete_reaction(session, existing)
        await comment_repo.adjust_likes(session, comment_id, -1)
    return await comment_repo.get_likes(session, comment_id)


def _count_reactions(target_column, target_id_column, kind: str):
    return (
        select(func.count(Like.id))
        .where(target_column == target_id_column, Like.kind == kind)
        .scalar_subquery()
    )


async def reconcile_video_counters(session: AsyncSession, video_ids: list[UUID] | None = None) -> int:
    """Recompute likes/dislikes of the given videos (all when ``None``) from the ledger."""
    stmt = update(Video).values(
        likes=_count_reactions(Like.video_id, Video.id, ReactionKind.like.value),
        dislikes=_count_reactions(Like.video_id, Video.id, ReactionKind.dislike.value),
    )
    if video_ids is not None:
        if not video_ids:
            return 0
        stmt = stmt.where(Video.id.in_(video_ids))
    result = await session.execute(stmt.execution_options(synchronize_session=False))
    return result.rowcount or 0


async def reconcile_comment_counters(session: AsyncSession, comment_ids: list[UUID] | None = None) -> int:
    stmt = update(Comment).values(
        likes=_count_reactions(Like.comment_id, Comment.id, ReactionKind.like.value),
    )
    if comment_ids is not None:
        if not comment_ids:
            return 0
        stmt = stmt.where(Comment.id.in_(comment_ids))
    result = await session.execute(stmt.execution_options(synchronize_session=False))
    return result.rowcount or 0


async def reconcile_subscriber_counts(session: AsyncSession, user_ids: list[UUID] | None = None) -> int:
    count = (
        select(func.count(Subscription.id))
        .where(Subscription.creator_id == User.id)
        .scalar_subquery()
    )
    stmt = update(User).values(subscriber_count=count)
    if user_ids is not None:
        if not user_ids:
            return 0
        stmt = stmt.where(User.id.in_(user_ids))
    result = await session.execute(stmt.execution_options(synchronize_session=False))
    return result.rowcount or 0
