import uuid
from sqlalchemy import DateTime, ForeignKey, Uuid, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime

from vidtube.db.base import Base
from vidtube.models.user import utcnow


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("subscriber_id", "creator_id", name="uq_subscriptions_subscriber_creator"),
        CheckConstraint("subscriber_id <> creator_id", name="ck_subscriptions_not_self"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    subscriber_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    creator = relationship("User", foreign_keys=[creator_id], lazy="selectin")
