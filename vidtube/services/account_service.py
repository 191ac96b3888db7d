import logging

from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.repositories import (
    comment_repo,
    history_repo,
    like_repo,
    subscription_repo,
    user_repo,
    video_repo,
)
from vidtube.models.user import User
from vidtube.services import reaction_service, video_service
from vidtube.services.upload_service import AVATARS

logger = logging.getLogger(__name__)


async def delete_account(session: AsyncSession, user: User) -> list[tuple[str, str]]:
    """
    Remove a user and everything they own.

    Creators the user subscribed to lose one subscriber each, and counters of
    videos/comments the user reacted to are rebuilt from the ledger once the
    user's reactions are gone. Returns the blobs to remove after commit.
    """
    user_id = user.id

    videos = await video_repo.list_videos_by_creator(session, user_id)
    blobs = await video_service.delete_videos(session, videos)

    reacted_video_ids, reacted_comment_ids = await like_repo.list_reacted_targets(session, user_id)
    await like_repo.delete_reactions_by_user(session, user_id)

    own_comment_ids = await comment_repo.list_comment_ids_by_user(session, user_id)
    await like_repo.delete_reactions_on_comments(session, own_comment_ids)
    await comment_repo.delete_comments(session, own_comment_ids)

    for creator_id in await subscription_repo.get_creator_ids(session, user_id):
        if await subscription_repo.delete_subscription(session, user_id, creator_id):
            await user_repo.adjust_subscriber_count(session, creator_id, -1)
    await subscription_repo.delete_subscribers_of(session, user_id)

    await history_repo.clear_history(session, user_id)

    remaining_comment_ids = [cid for cid in reacted_comment_ids if cid not in set(own_comment_ids)]
    await reaction_service.reconcile_video_counters(session, reacted_video_ids)
    await reaction_service.reconcile_comment_counters(session, remaining_comment_ids)

    if user.avatar:
        blobs.append((AVATARS, user.avatar))
    await user_repo.delete_user(session, user)
    logger.info(f"Deleted account {user_id}")
    return blobs
