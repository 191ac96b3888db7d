from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.repositories import comment_repo, like_repo
from vidtube.db.session import get_db
from vidtube.dependencies import get_current_user
from vidtube.models.comment import Comment
from vidtube.models.user import User
from vidtube.schemas.comment import CommentLikeRequest, CommentLikeResponse, CommentResponse, CommentUpdate
from vidtube.schemas.common import MessageResponse
from vidtube.services import reaction_service

router = APIRouter()


async def _get_owned_comment(db: AsyncSession, comment_id: UUID, user: User, action: str) -> Comment:
    comment = await comment_repo.get_comment_by_id(db, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if comment.user_id != user.id:
        raise HTTPException(status_code=403, detail=f"Not authorized to {action} this comment")
    return comment


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: UUID,
    body: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = await _get_owned_comment(db, comment_id, current_user, "update")
    if not body.content or not body.content.strip():
        raise HTTPException(status_code=400, detail="Comment content is required")
    comment = await comment_repo.update_comment(db, comment, body.content)
    await db.commit()
    return comment


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = await _get_owned_comment(db, comment_id, current_user, "delete")
    await like_repo.delete_reactions_on_comments(db, [comment.id])
    await comment_repo.delete_comment(db, comment)
    await db.commit()
    return MessageResponse(message="Comment deleted successfully")


@router.post("/{comment_id}/like", response_model=CommentLikeResponse)
async def like_comment(
    comment_id: UUID,
    body: CommentLikeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    likes = await reaction_service.set_comment_reaction(db, comment_id, current_user.id, body.action == "like")
    await db.commit()
    return CommentLikeResponse(likes=likes)
