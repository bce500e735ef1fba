"""Aggregation of pending email notifications into per-recipient digests.

Runs as the body of the delayed ``aggregate_vessel_notifications_task`` job.
Several runs for the same vessel may overlap; the conditional claim in
``EmailNotificationRepository.claim`` guarantees each record is grouped by
exactly one of them.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vessel_digest.core.config import settings
from vessel_digest.models.email_notification import EmailNotification
from vessel_digest.models.shared import utc_now
from vessel_digest.models.user import User
from vessel_digest.models.vessel import Vessel
from vessel_digest.repositories.email_notification_repository import EmailNotificationRepository
from vessel_digest.repositories.vessel_repository import VesselRepository
from vessel_digest.services.digest_delivery import DeliveryResult, DigestDeliveryCoordinator
from vessel_digest.services.recipient_resolver import RecipientResolver, VesselRecipientResolver

logger = logging.getLogger(__name__)


class AggregationOutcome(str, Enum):
    OK = "ok"
    VESSEL_NOT_FOUND = "vessel_not_found"
    RECIPIENT_RESOLUTION_FAILED = "recipient_resolution_failed"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass
class AggregationReport:
    vessel_id: UUID
    outcome: AggregationOutcome = AggregationOutcome.OK
    deliveries: list[DeliveryResult] = field(default_factory=list)
    failed_recipients: list[UUID] = field(default_factory=list)

    @property
    def sent_count(self) -> int:
        return sum(1 for d in self.deliveries if d.sent)

    @property
    def failed_count(self) -> int:
        return sum(1 for d in self.deliveries if not d.sent)


def generate_group_id(
    recipient_id: UUID, vessel_id: UUID, digest_type: str, now: datetime
) -> str:
    """Unique, traceable digest id: ``{unix_ts}_{recipient}_{vessel}_{type}_{random}``."""
    return f"{int(now.timestamp())}_{recipient_id}_{vessel_id}_{digest_type}_{secrets.token_hex(4)}"


def group_by_digest_type(
    notifications: Iterable[EmailNotification],
) -> dict[str, list[EmailNotification]]:
    """Partition notifications by digest type, keeping their order."""
    grouped: dict[str, list[EmailNotification]] = {}
    for notification in notifications:
        grouped.setdefault(str(notification.digest_type), []).append(notification)
    return grouped


class NotificationAggregator:
    def __init__(
        self,
        db: Session,
        resolver: RecipientResolver | None = None,
        delivery: DigestDeliveryCoordinator | None = None,
        grouping_window: timedelta | None = None,
        digest_cap: int | None = None,
    ):
        self.db = db
        self.repo = EmailNotificationRepository(db)
        self.vessel_repo = VesselRepository(db)
        self.resolver: RecipientResolver = (
            resolver if resolver is not None else VesselRecipientResolver(db)
        )
        self.delivery = delivery if delivery is not None else DigestDeliveryCoordinator(db)
        self.grouping_window = (
            grouping_window
            if grouping_window is not None
            else timedelta(minutes=settings.NOTIFICATION_GROUPING_WINDOW_MINUTES)
        )
        self.digest_cap = digest_cap if digest_cap is not None else settings.NOTIFICATION_DIGEST_CAP

    async def run_aggregation(
        self, vessel_id: UUID, now: datetime | None = None
    ) -> AggregationReport:
        """Group and deliver every eligible recipient's pending notifications for a vessel.

        Each recipient is processed independently: a failure for one is
        logged and recorded in the report, and the run moves on.

        Args:
            vessel_id: The vessel to aggregate.
            now: Reference time for the grouping window, defaults to now.

        Returns:
            An AggregationReport describing every delivery attempt.
        """
        now = now or utc_now()
        report = AggregationReport(vessel_id=vessel_id)

        try:
            vessel = self.vessel_repo.get_by_id(vessel_id)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to load vessel %s for email notifications", vessel_id)
            report.outcome = AggregationOutcome.STORE_UNAVAILABLE
            return report

        if vessel is None:
            logger.warning("Vessel %s not found for email notifications", vessel_id)
            report.outcome = AggregationOutcome.VESSEL_NOT_FOUND
            return report
        if not vessel.name:
            logger.warning("Vessel %s name is empty", vessel_id)

        try:
            recipients = self.resolver.eligible_recipients(vessel_id)
        except Exception:
            self.db.rollback()
            logger.exception("Failed to resolve notification recipients for vessel %s", vessel_id)
            report.outcome = AggregationOutcome.RECIPIENT_RESOLUTION_FAILED
            return report

        since = now - self.grouping_window
        for recipient in recipients:
            try:
                await self._aggregate_recipient(recipient, vessel, since, now, report)
            except Exception:
                self.db.rollback()
                logger.exception(
                    "Failed to aggregate email notifications for user %s on vessel %s",
                    recipient.id,
                    vessel_id,
                )
                report.failed_recipients.append(recipient.id)  # type: ignore[arg-type]

        return report

    async def _aggregate_recipient(
        self,
        recipient: User,
        vessel: Vessel,
        since: datetime,
        now: datetime,
        report: AggregationReport,
    ) -> None:
        """Claim and deliver one digest per digest type, appending each result to ``report``.

        A failure while claiming one digest type is logged and recorded; the
        recipient's other digest types are still processed.
        """
        pending = self.repo.get_pending_for_grouping(
            recipient.id,  # type: ignore[arg-type]
            vessel.id,  # type: ignore[arg-type]
            since,
            until=now,
        )
        for digest_type, notifications in group_by_digest_type(pending).items():
            try:
                claimed, group_id = self._claim_batch(
                    recipient, vessel, digest_type, notifications, now
                )
            except Exception:
                self.db.rollback()
                logger.exception(
                    "Failed to claim %s notifications for user %s on vessel %s",
                    digest_type,
                    recipient.id,
                    vessel.id,
                )
                if recipient.id not in report.failed_recipients:
                    report.failed_recipients.append(recipient.id)  # type: ignore[arg-type]
                continue

            if not claimed:
                logger.info(
                    "Notifications for user %s (vessel %s, type %s) already claimed by another run",
                    recipient.id,
                    vessel.id,
                    digest_type,
                )
                continue

            report.deliveries.append(
                await self.delivery.deliver_digest(
                    recipient, vessel, digest_type, claimed, group_id
                )
            )

    def _claim_batch(
        self,
        recipient: User,
        vessel: Vessel,
        digest_type: str,
        notifications: list[EmailNotification],
        now: datetime,
    ) -> tuple[list[EmailNotification], str]:
        # Cap each digest; the rest stay pending for a later run
        batch = notifications[: self.digest_cap]
        group_id = generate_group_id(
            recipient.id,  # type: ignore[arg-type]
            vessel.id,  # type: ignore[arg-type]
            digest_type,
            now,
        )
        claimed = self.repo.claim([n.id for n in batch], group_id, now)  # type: ignore[misc]
        return claimed, group_id
