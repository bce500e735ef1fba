"""Vessel event intake endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vessel_digest.core.auth import require_api_key
from vessel_digest.core.database import get_db
from vessel_digest.schemas.vessel_event import IntakeResponse, VesselEventCreate
from vessel_digest.services.notification_intake import NotificationIntakeService

router = APIRouter()


@router.post(
    "/",
    response_model=IntakeResponse,
    status_code=202,
    summary="Record a vessel event",
    description=(
        "Create a pending email notification for every eligible recipient of the "
        "vessel and schedule a grouped delivery. Delivery failures are never "
        "reported here."
    ),
    responses={
        401: {"description": "Unauthorized – invalid or missing API key"},
        422: {"description": "Validation error"},
    },
)
async def record_vessel_event(
    data: VesselEventCreate,
    db: Session = Depends(get_db),
    _: None = Depends(require_api_key),
) -> IntakeResponse:
    service = NotificationIntakeService(db)
    result = await service.record_event(
        digest_type=data.digest_type,
        subject_type=data.subject_type,
        subject_id=data.subject_id,
        vessel_id=data.vessel_id,
        actor_id=data.actor_id,
        snapshot=data.snapshot,
    )
    db.commit()
    return IntakeResponse(
        outcome=result.outcome.value,
        created=result.created,
        failed=result.failed,
        scheduled=result.scheduled,
        error=result.error,
    )
