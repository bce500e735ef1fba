from datetime import timedelta
from typing import Any
from uuid import UUID

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from vessel_digest.core.config import settings

# Redis connection settings
redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)

AGGREGATION_TASK_NAME = "aggregate_vessel_notifications_task"


async def get_redis_pool() -> ArqRedis:
    """Get or create Redis pool for arq"""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job | None:
    """
    Enqueue a task to the arq worker.

    Args:
        task_name: Name of the task function
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task, including arq's
            ``_defer_by`` and ``_queue_name`` options

    Returns:
        Job object from arq, or None if arq refused a duplicate job id
    """
    pool = await get_redis_pool()
    try:
        return await pool.enqueue_job(task_name, *args, **kwargs)
    finally:
        await pool.close()


async def enqueue_vessel_aggregation(
    vessel_id: UUID, defer_by: timedelta | None = None
) -> Job | None:
    """Enqueue a grouped notification pass for a vessel on the notification queue."""
    return await enqueue_task(
        AGGREGATION_TASK_NAME,
        str(vessel_id),
        _defer_by=defer_by,
        _queue_name=settings.NOTIFICATION_QUEUE_NAME,
    )
