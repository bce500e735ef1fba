"""EmailNotification model: one fact that a recipient should hear about a vessel event."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String

from vessel_digest.core.database import Base
from vessel_digest.models.shared import UUIDType, generate_uuid, utc_now


class DigestType(str, Enum):
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_DELETED = "transaction_deleted"
    VOYAGE_STARTED = "voyage_started"
    VOYAGE_COMPLETED = "voyage_completed"


class NotificationState(str, Enum):
    PENDING = "pending"
    GROUPED = "grouped"
    SENT = "sent"


class EmailNotification(Base):
    """A pending, grouped or sent notification for a single recipient.

    Rows are only ever mutated by the two conditional transitions in
    ``EmailNotificationRepository.claim`` and ``mark_sent``.
    """

    __tablename__ = "email_notifications"
    __table_args__ = (
        Index(
            "ix_email_notifications_selection",
            "recipient_id",
            "vessel_id",
            "state",
            "created_at",
        ),
        Index("ix_email_notifications_group_id", "group_id"),
        Index("ix_email_notifications_subject", "subject_type", "subject_id"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    recipient_id = Column(
        UUIDType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    vessel_id = Column(
        UUIDType,
        ForeignKey("vessels.id", ondelete="CASCADE"),
        nullable=False,
    )
    digest_type = Column(String(50), nullable=False)
    subject_type = Column(String(100), nullable=False)
    subject_id = Column(String(255), nullable=False)
    subject_snapshot = Column(JSON, nullable=True)
    actor_id = Column(UUIDType, nullable=True)
    state = Column(String(20), nullable=False, default=NotificationState.PENDING.value)
    group_id = Column(String(255), nullable=True)
    grouped_at = Column(DateTime(timezone=True), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
