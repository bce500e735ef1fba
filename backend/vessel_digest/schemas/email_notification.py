"""Pydantic schemas for EmailNotification."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class EmailNotificationResponse(BaseModel):
    id: UUID
    recipient_id: UUID
    vessel_id: UUID
    digest_type: str
    subject_type: str
    subject_id: str
    subject_snapshot: dict[str, Any] | None
    actor_id: UUID | None
    state: str
    group_id: str | None
    grouped_at: datetime | None
    sent_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationStateCountsResponse(BaseModel):
    pending: int = 0
    grouped: int = 0
    sent: int = 0


class DeliveryResultResponse(BaseModel):
    status: str
    recipient_id: UUID
    vessel_id: UUID
    digest_type: str
    group_id: str
    record_ids: list[UUID]
    error: str | None = None


class AggregationEnqueuedResponse(BaseModel):
    vessel_id: UUID
    job_id: str | None
