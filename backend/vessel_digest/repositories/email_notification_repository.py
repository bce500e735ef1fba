"""Repository for EmailNotification records and their state transitions."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from vessel_digest.models.email_notification import EmailNotification, NotificationState
from vessel_digest.models.shared import generate_uuid, utc_now


class EmailNotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **kwargs: Any) -> EmailNotification:
        notification = self.add(**kwargs)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def add(
        self,
        *,
        recipient_id: UUID,
        vessel_id: UUID,
        digest_type: str,
        subject_type: str,
        subject_id: str,
        actor_id: UUID | None = None,
        subject_snapshot: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> EmailNotification:
        """Insert a pending record and flush it, leaving the commit to the caller."""
        notification = EmailNotification(
            id=generate_uuid(),
            recipient_id=recipient_id,
            vessel_id=vessel_id,
            digest_type=digest_type,
            subject_type=subject_type,
            subject_id=subject_id,
            subject_snapshot=subject_snapshot,
            actor_id=actor_id,
            state=NotificationState.PENDING.value,
            created_at=created_at or utc_now(),
        )
        self.db.add(notification)
        self.db.flush()
        return notification

    def get_by_id(self, notification_id: UUID) -> EmailNotification | None:
        return (
            self.db.query(EmailNotification)
            .filter(EmailNotification.id == notification_id)
            .first()
        )

    def get_by_ids(self, notification_ids: list[UUID]) -> list[EmailNotification]:
        if not notification_ids:
            return []
        return (
            self.db.query(EmailNotification)
            .filter(EmailNotification.id.in_(notification_ids))
            .order_by(EmailNotification.created_at.asc())
            .all()
        )

    def get_pending_for_grouping(
        self,
        recipient_id: UUID,
        vessel_id: UUID,
        since: datetime,
        until: datetime | None = None,
    ) -> list[EmailNotification]:
        """Pending records of a recipient on a vessel created in ``[since, until]``."""
        query = self.db.query(EmailNotification).filter(
            EmailNotification.recipient_id == recipient_id,
            EmailNotification.vessel_id == vessel_id,
            EmailNotification.state == NotificationState.PENDING.value,
            EmailNotification.created_at >= since,
        )
        if until is not None:
            query = query.filter(EmailNotification.created_at <= until)
        return query.order_by(
            EmailNotification.created_at.asc(), EmailNotification.id.asc()
        ).all()

    def claim(
        self,
        notification_ids: list[UUID],
        group_id: str,
        grouped_at: datetime,
    ) -> list[EmailNotification]:
        """Move still-pending records to grouped under ``group_id``.

        A single conditional UPDATE: rows another worker already claimed are
        left alone. Returns the records that now carry ``group_id``.
        """
        if not notification_ids:
            return []
        (
            self.db.query(EmailNotification)
            .filter(
                EmailNotification.id.in_(notification_ids),
                EmailNotification.state == NotificationState.PENDING.value,
            )
            .update(
                {
                    "state": NotificationState.GROUPED.value,
                    "group_id": group_id,
                    "grouped_at": grouped_at,
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return self.get_by_group_id(group_id)

    def mark_sent(self, notification_ids: list[UUID], sent_at: datetime) -> int:
        """Move grouped records to sent. Records already sent are untouched."""
        if not notification_ids:
            return 0
        count = (
            self.db.query(EmailNotification)
            .filter(
                EmailNotification.id.in_(notification_ids),
                EmailNotification.state == NotificationState.GROUPED.value,
            )
            .update(
                {
                    "state": NotificationState.SENT.value,
                    "sent_at": sent_at,
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return count

    def get_by_group_id(self, group_id: str) -> list[EmailNotification]:
        return (
            self.db.query(EmailNotification)
            .filter(EmailNotification.group_id == group_id)
            .order_by(EmailNotification.created_at.asc(), EmailNotification.id.asc())
            .all()
        )

    def get_all(
        self,
        vessel_id: UUID | None = None,
        recipient_id: UUID | None = None,
        state: str | None = None,
        digest_type: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[EmailNotification]:
        query = self.db.query(EmailNotification)
        if vessel_id is not None:
            query = query.filter(EmailNotification.vessel_id == vessel_id)
        if recipient_id is not None:
            query = query.filter(EmailNotification.recipient_id == recipient_id)
        if state is not None:
            query = query.filter(EmailNotification.state == state)
        if digest_type is not None:
            query = query.filter(EmailNotification.digest_type == digest_type)
        query = query.order_by(EmailNotification.created_at.desc())
        return query.offset(skip).limit(limit).all()

    def count_by_state(self, vessel_id: UUID | None = None) -> dict[str, int]:
        query = self.db.query(EmailNotification.state, func.count(EmailNotification.id))
        if vessel_id is not None:
            query = query.filter(EmailNotification.vessel_id == vessel_id)
        counts = {state.value: 0 for state in NotificationState}
        for state, count in query.group_by(EmailNotification.state).all():
            counts[str(state)] = int(count)
        return counts
