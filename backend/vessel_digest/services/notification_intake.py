"""Intake of notifiable vessel events into pending email notification records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from vessel_digest.models.email_notification import DigestType
from vessel_digest.repositories.email_notification_repository import EmailNotificationRepository
from vessel_digest.services.aggregation_scheduler import AggregationScheduler
from vessel_digest.services.recipient_resolver import RecipientResolver, VesselRecipientResolver

logger = logging.getLogger(__name__)


class IntakeOutcome(str, Enum):
    OK = "ok"
    RECIPIENT_RESOLUTION_FAILED = "recipient_resolution_failed"
    STORE_UNAVAILABLE = "store_unavailable"
    SCHEDULING_FAILED = "scheduling_failed"


@dataclass
class IntakeResult:
    outcome: IntakeOutcome = IntakeOutcome.OK
    created: int = 0
    failed: int = 0
    scheduled: bool = False
    error: str | None = None


class NotificationIntakeService:
    """Record a vessel event for every eligible recipient.

    Intake is a side channel of the business operation that raised the
    event, so ``record_event`` never raises: failures are logged and
    reported through the returned IntakeResult.

    Records are added to the caller's session inside savepoints and are
    committed with the caller's transaction. A failed step only rolls back
    its own savepoint.
    """

    def __init__(
        self,
        db: Session,
        resolver: RecipientResolver | None = None,
        scheduler: AggregationScheduler | None = None,
    ):
        self.db = db
        self.repo = EmailNotificationRepository(db)
        self.resolver: RecipientResolver = (
            resolver if resolver is not None else VesselRecipientResolver(db)
        )
        self.scheduler = scheduler if scheduler is not None else AggregationScheduler()

    async def record_event(
        self,
        digest_type: DigestType | str,
        subject_type: str,
        subject_id: str,
        vessel_id: UUID,
        actor_id: UUID | None,
        snapshot: dict[str, Any] | None = None,
    ) -> IntakeResult:
        """Create one pending notification per recipient and schedule aggregation.

        Args:
            digest_type: Kind of event, e.g. ``transaction_created``.
            subject_type: Type of the entity the event is about.
            subject_id: ID of that entity.
            vessel_id: Vessel the event happened on.
            actor_id: User who caused the event; never notified.
            snapshot: Display data captured now, kept with each record.
        """
        type_value = digest_type.value if isinstance(digest_type, DigestType) else digest_type

        try:
            with self.db.begin_nested():
                recipients = self.resolver.eligible_recipients(
                    vessel_id, exclude_user_id=actor_id
                )
        except Exception as exc:
            logger.exception(
                "Failed to resolve recipients for %s notification (%s %s, vessel %s)",
                type_value,
                subject_type,
                subject_id,
                vessel_id,
            )
            return IntakeResult(
                outcome=IntakeOutcome.RECIPIENT_RESOLUTION_FAILED,
                error=str(exc),
            )

        result = IntakeResult()
        for recipient in recipients:
            if actor_id is not None and recipient.id == actor_id:
                continue
            try:
                with self.db.begin_nested():
                    self.repo.add(
                        recipient_id=recipient.id,  # type: ignore[arg-type]
                        vessel_id=vessel_id,
                        digest_type=type_value,
                        subject_type=subject_type,
                        subject_id=str(subject_id),
                        actor_id=actor_id,
                        subject_snapshot=snapshot,
                    )
                result.created += 1
            except Exception as exc:
                logger.exception(
                    "Failed to create %s notification for user %s (%s %s, vessel %s)",
                    type_value,
                    recipient.id,
                    subject_type,
                    subject_id,
                    vessel_id,
                )
                result.failed += 1
                result.outcome = IntakeOutcome.STORE_UNAVAILABLE
                result.error = str(exc)

        try:
            await self.scheduler.schedule_aggregation(vessel_id)
            result.scheduled = True
        except Exception as exc:
            logger.exception(
                "Failed to schedule notification aggregation for vessel %s (%s %s %s)",
                vessel_id,
                type_value,
                subject_type,
                subject_id,
            )
            if result.outcome == IntakeOutcome.OK:
                result.outcome = IntakeOutcome.SCHEDULING_FAILED
                result.error = str(exc)

        return result
