"""Debounced scheduling of vessel notification aggregation."""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from arq.jobs import Job

from vessel_digest.core.config import settings
from vessel_digest.tasks import enqueue_vessel_aggregation

logger = logging.getLogger(__name__)


class AggregationScheduler:
    """Enqueue one delayed aggregation job per call.

    Jobs are not deduplicated; the aggregator tolerates several runs for the
    same vessel, including concurrent ones.
    """

    def __init__(self, debounce: timedelta | None = None):
        if debounce is None:
            debounce = timedelta(seconds=settings.NOTIFICATION_DEBOUNCE_SECONDS)
        self.debounce = debounce

    async def schedule_aggregation(self, vessel_id: UUID) -> Job | None:
        job = await enqueue_vessel_aggregation(vessel_id, defer_by=self.debounce)
        logger.debug(
            "Scheduled notification aggregation for vessel %s in %ss",
            vessel_id,
            int(self.debounce.total_seconds()),
        )
        return job
