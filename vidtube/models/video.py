import enum
import uuid
from sqlalchemy import String, DateTime, Integer, Boolean, Text, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime

from vidtube.db.base import Base
from vidtube.models.user import utcnow


class VideoCategory(str, enum.Enum):
    none = ""
    music = "Music"
    gaming = "Gaming"
    sports = "Sports"
    news = "News"
    comedy = "Comedy"
    education = "Education"
    science = "Science"
    technology = "Technology"


class Video(Base):
    __tablename__ = "videos"
    __table_args__ = (
        CheckConstraint("likes >= 0 AND dislikes >= 0", name="ck_videos_reaction_counters_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    thumbnail: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # seconds
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dislikes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default=VideoCategory.none.value)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    creator = relationship("User", lazy="selectin")
