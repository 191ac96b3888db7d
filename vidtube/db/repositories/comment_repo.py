from uuid import UUID
from sqlalchemy import select, update, delete, case
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.models.comment import Comment


async def get_comments_by_video(session: AsyncSession, video_id: UUID) -> list[Comment]:
    result = await session.execute(
        select(Comment).where(Comment.video_id == video_id).order_by(Comment.created_at.desc())
    )
    return list(result.scalars().all())


async def get_comment_by_id(session: AsyncSession, comment_id: UUID) -> Comment | None:
    result = await session.execute(select(Comment).where(Comment.id == comment_id))
    return result.scalars().one_or_none()


async def get_comment_for_update(session: AsyncSession, comment_id: UUID) -> Comment | None:
    result = await session.execute(
        select(Comment)
        .where(Comment.id == comment_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalars().one_or_none()


async def list_comment_ids_by_user(session: AsyncSession, user_id: UUID) -> list[UUID]:
    result = await session.execute(select(Comment.id).where(Comment.user_id == user_id))
    return list(result.scalars().all())


async def list_comment_ids_by_videos(session: AsyncSession, video_ids: list[UUID]) -> list[UUID]:
    if not video_ids:
        return []
    result = await session.execute(select(Comment.id).where(Comment.video_id.in_(video_ids)))
    return list(result.scalars().all())


async def create_comment(session: AsyncSession, video_id: UUID, user_id: UUID, content: str) -> Comment:
    comment = Comment(video_id=video_id, user_id=user_id, content=content)
    session.add(comment)
    await session.flush()
    await session.refresh(comment)
    return comment


async def update_comment(session: AsyncSession, comment: Comment, content: str) -> Comment:
    comment.content = content
    comment.edited = True
    await session.flush()
    await session.refresh(comment)
    return comment


async def adjust_likes(session: AsyncSession, comment_id: UUID, delta: int) -> None:
    if delta >= 0:
        value = Comment.likes + delta
    else:
        value = case((Comment.likes + delta > 0, Comment.likes + delta), else_=0)
    await session.execute(
        update(Comment)
        .where(Comment.id == comment_id)
        .values(likes=value)
        .execution_options(synchronize_session=False)
    )


async def get_likes(session: AsyncSession, comment_id: UUID) -> int:
    result = await session.execute(select(Comment.likes).where(Comment.id == comment_id))
    return result.scalar_one()


async def delete_comment(session: AsyncSession, comment: Comment) -> None:
    await session.delete(comment)
    await session.flush()


async def delete_comments(session: AsyncSession, comment_ids: list[UUID]) -> None:
    if comment_ids:
        await session.execute(
            delete(Comment).where(Comment.id.in_(comment_ids)).execution_options(synchronize_session=False)
        )
