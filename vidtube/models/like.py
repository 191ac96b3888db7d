import enum
import uuid
from sqlalchemy import String, DateTime, ForeignKey, Uuid, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from vidtube.db.base import Base
from vidtube.models.user import utcnow


class ReactionKind(str, enum.Enum):
    like = "like"
    dislike = "dislike"


class Like(Base):
    """One user's reaction on either a video or a comment (never both)."""

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_likes_user_video"),
        UniqueConstraint("user_id", "comment_id", name="uq_likes_user_comment"),
        CheckConstraint(
            "(video_id IS NULL AND comment_id IS NOT NULL) OR (video_id IS NOT NULL AND comment_id IS NULL)",
            name="ck_likes_single_target",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("videos.id", ondelete="CASCADE"), nullable=True)
    comment_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
