"""Pydantic schemas for notifiable vessel events."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from vessel_digest.models.email_notification import DigestType


class VesselEventCreate(BaseModel):
    digest_type: DigestType
    subject_type: str = Field(..., min_length=1, max_length=100)
    subject_id: str = Field(..., min_length=1, max_length=255)
    vessel_id: UUID
    actor_id: UUID | None = None
    snapshot: dict[str, Any] | None = None


class IntakeResponse(BaseModel):
    outcome: str
    created: int
    failed: int
    scheduled: bool
    error: str | None = None
