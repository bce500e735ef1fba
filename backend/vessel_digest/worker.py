import logging
from typing import Any
from uuid import UUID

from vessel_digest.core.config import settings
from vessel_digest.core.database import SessionLocal
from vessel_digest.services.digest_delivery import DigestDeliveryCoordinator
from vessel_digest.services.email_service import EmailService
from vessel_digest.services.notification_aggregator import NotificationAggregator
from vessel_digest.services.recipient_resolver import VesselRecipientResolver
from vessel_digest.tasks import redis_settings

logger = logging.getLogger(__name__)


async def aggregate_vessel_notifications_task(ctx: dict[str, Any], vessel_id: str) -> int:
    """Background task: group pending email notifications of a vessel and send digests.

    Enqueued by event intake after the debounce window. The task only carries
    the vessel id; everything else is re-read from the database, so late,
    repeated or concurrent runs are safe.

    Args:
        ctx: ARQ worker context.
        vessel_id: UUID string of the vessel to aggregate.

    Returns:
        Number of digests sent.
    """
    db = SessionLocal()
    try:
        aggregator = NotificationAggregator(
            db,
            resolver=VesselRecipientResolver(db),
            delivery=DigestDeliveryCoordinator(db, mailer=EmailService()),
        )
        report = await aggregator.run_aggregation(UUID(vessel_id))
        if report.deliveries or report.failed_recipients:
            logger.info(
                "Vessel %s aggregation: %d digest(s) sent, %d failed, %d recipient(s) failed",
                vessel_id,
                report.sent_count,
                report.failed_count,
                len(report.failed_recipients),
            )
        return report.sent_count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        aggregate_vessel_notifications_task,
    ]
    queue_name = settings.NOTIFICATION_QUEUE_NAME
    redis_settings = redis_settings
