"""Delivery of grouped notification digests and the grouped -> sent transition."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vessel_digest.models.email_notification import EmailNotification, NotificationState
from vessel_digest.models.shared import utc_now
from vessel_digest.models.user import User
from vessel_digest.models.vessel import Vessel
from vessel_digest.repositories.email_notification_repository import EmailNotificationRepository
from vessel_digest.repositories.user_repository import UserRepository
from vessel_digest.repositories.vessel_repository import VesselRepository
from vessel_digest.services.email_service import EmailService

logger = logging.getLogger(__name__)


class DigestMailer(Protocol):
    async def send_digest(
        self,
        recipient: User,
        vessel: Vessel,
        digest_type: str,
        snapshots: Sequence[dict[str, Any]],
        group_id: str,
    ) -> bool: ...


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass
class DeliveryResult:
    """Outcome of one digest delivery attempt."""

    status: DeliveryStatus
    recipient_id: UUID
    vessel_id: UUID
    digest_type: str
    group_id: str
    record_ids: list[UUID] = field(default_factory=list)
    error: str | None = None

    @property
    def sent(self) -> bool:
        return self.status == DeliveryStatus.SENT


class DigestDeliveryCoordinator:
    """Send a claimed digest and confirm it.

    Records are marked sent only after the mailer confirms. A failed send
    leaves them grouped; nothing here retries or reverts them to pending.
    """

    def __init__(self, db: Session, mailer: DigestMailer | None = None):
        self.db = db
        self.repo = EmailNotificationRepository(db)
        self.mailer: DigestMailer = mailer if mailer is not None else EmailService()

    async def deliver_digest(
        self,
        recipient: User,
        vessel: Vessel,
        digest_type: str,
        records: Sequence[EmailNotification],
        group_id: str,
    ) -> DeliveryResult:
        """Send one digest email for ``records`` and mark them sent on success.

        Args:
            recipient: The user receiving the digest.
            vessel: The vessel the records belong to.
            digest_type: Digest type shared by the records.
            records: Claimed records, oldest first.
            group_id: Group identifier assigned at claim time.

        Returns:
            A DeliveryResult; never raises.
        """
        record_ids: list[UUID] = [r.id for r in records]  # type: ignore[misc]
        result = DeliveryResult(
            status=DeliveryStatus.FAILED,
            recipient_id=recipient.id,  # type: ignore[arg-type]
            vessel_id=vessel.id,  # type: ignore[arg-type]
            digest_type=digest_type,
            group_id=group_id,
            record_ids=record_ids,
        )
        snapshots = [dict(r.subject_snapshot or {}) for r in records]

        try:
            self._release_session(recipient, vessel)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(
                "Failed to load digest %s for user %s before sending", group_id, result.recipient_id
            )
            result.error = str(exc)
            return result

        try:
            delivered = await self.mailer.send_digest(
                recipient, vessel, digest_type, snapshots, group_id
            )
        except Exception as exc:
            logger.error(
                "Failed to send grouped email notification to user %s "
                "(vessel %s, type %s, group %s): %s",
                recipient.id,
                vessel.id,
                digest_type,
                group_id,
                exc,
            )
            result.error = str(exc)
            return result

        if not delivered:
            logger.error(
                "Mailer rejected grouped email notification to user %s "
                "(vessel %s, type %s, group %s)",
                recipient.id,
                vessel.id,
                digest_type,
                group_id,
            )
            result.error = "Mailer reported failure"
            return result

        try:
            self.repo.mark_sent(record_ids, utc_now())
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(
                "Digest %s was sent to user %s but could not be marked as sent",
                group_id,
                recipient.id,
            )
            result.error = f"Sent but not confirmed: {exc}"
            return result

        logger.info(
            "Grouped email notification sent to user %s (vessel %s, type %s, count %d, group %s)",
            recipient.id,
            vessel.id,
            digest_type,
            len(record_ids),
            group_id,
        )
        result.status = DeliveryStatus.SENT
        return result

    async def redeliver_group(self, group_id: str) -> DeliveryResult | None:
        """Replay a digest whose records are stuck in the grouped state.

        Operator tool only; the pipeline itself never calls it.

        Returns:
            The DeliveryResult, or None when the group has no grouped records
            or its recipient or vessel no longer exists.
        """
        records = [
            r
            for r in self.repo.get_by_group_id(group_id)
            if r.state == NotificationState.GROUPED.value
        ]
        if not records:
            return None

        first = records[0]
        recipient = UserRepository(self.db).get_by_id(first.recipient_id)  # type: ignore[arg-type]
        vessel = VesselRepository(self.db).get_by_id(first.vessel_id)  # type: ignore[arg-type]
        if recipient is None or vessel is None:
            logger.warning(
                "Cannot redeliver group %s: recipient %s or vessel %s not found",
                group_id,
                first.recipient_id,
                first.vessel_id,
            )
            return None

        logger.info("Redelivering grouped notifications %s to user %s", group_id, recipient.id)
        return await self.deliver_digest(
            recipient, vessel, str(first.digest_type), records, group_id
        )

    def _release_session(self, *instances: object) -> None:
        """Detach fully loaded ``instances`` and end the read transaction.

        The mailer then reads them without touching the database, so no
        transaction stays open while the transport is awaited.
        """
        for instance in instances:
            if instance in self.db:
                self.db.refresh(instance)
                self.db.expunge(instance)
        self.db.commit()
