"""Email notification inspection and operator endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from vessel_digest.core.auth import require_api_key
from vessel_digest.core.database import get_db
from vessel_digest.models.email_notification import DigestType, NotificationState
from vessel_digest.repositories.email_notification_repository import EmailNotificationRepository
from vessel_digest.repositories.vessel_repository import VesselRepository
from vessel_digest.schemas.email_notification import (
    AggregationEnqueuedResponse,
    DeliveryResultResponse,
    EmailNotificationResponse,
    NotificationStateCountsResponse,
)
from vessel_digest.services.digest_delivery import DigestDeliveryCoordinator
from vessel_digest.tasks import enqueue_vessel_aggregation

router = APIRouter(dependencies=[Depends(require_api_key)])


@router.get(
    "/",
    response_model=list[EmailNotificationResponse],
    summary="List email notifications",
    responses={401: {"description": "Unauthorized – invalid or missing API key"}},
)
async def list_email_notifications(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    vessel_id: UUID | None = None,
    recipient_id: UUID | None = None,
    state: NotificationState | None = None,
    digest_type: DigestType | None = None,
    db: Session = Depends(get_db),
) -> list[EmailNotificationResponse]:
    """List notification records, newest first."""
    repo = EmailNotificationRepository(db)
    notifications = repo.get_all(
        vessel_id=vessel_id,
        recipient_id=recipient_id,
        state=state.value if state else None,
        digest_type=digest_type.value if digest_type else None,
        skip=skip,
        limit=limit,
    )
    return [EmailNotificationResponse.model_validate(n) for n in notifications]


@router.get(
    "/counts",
    response_model=NotificationStateCountsResponse,
    summary="Count email notifications by state",
    responses={401: {"description": "Unauthorized – invalid or missing API key"}},
)
async def count_email_notifications(
    vessel_id: UUID | None = None,
    db: Session = Depends(get_db),
) -> NotificationStateCountsResponse:
    """Pending and grouped counts expose starved and stuck records."""
    repo = EmailNotificationRepository(db)
    return NotificationStateCountsResponse(**repo.count_by_state(vessel_id))


@router.get(
    "/groups/{group_id}",
    response_model=list[EmailNotificationResponse],
    summary="Get the records of a digest",
    responses={
        401: {"description": "Unauthorized – invalid or missing API key"},
        404: {"description": "Group not found"},
    },
)
async def get_group(
    group_id: str,
    db: Session = Depends(get_db),
) -> list[EmailNotificationResponse]:
    repo = EmailNotificationRepository(db)
    notifications = repo.get_by_group_id(group_id)
    if not notifications:
        raise HTTPException(status_code=404, detail="Group not found")
    return [EmailNotificationResponse.model_validate(n) for n in notifications]


@router.post(
    "/vessels/{vessel_id}/aggregate",
    response_model=AggregationEnqueuedResponse,
    status_code=202,
    summary="Enqueue aggregation for a vessel",
    description=(
        "Enqueue an immediate grouping pass for the vessel. Use it to flush "
        "pending notifications left behind when no further event arrived."
    ),
    responses={
        401: {"description": "Unauthorized – invalid or missing API key"},
        404: {"description": "Vessel not found"},
    },
)
async def enqueue_aggregation(
    vessel_id: UUID,
    db: Session = Depends(get_db),
) -> AggregationEnqueuedResponse:
    if VesselRepository(db).get_by_id(vessel_id) is None:
        raise HTTPException(status_code=404, detail="Vessel not found")
    job = await enqueue_vessel_aggregation(vessel_id)
    return AggregationEnqueuedResponse(
        vessel_id=vessel_id,
        job_id=job.job_id if job is not None else None,
    )


@router.post(
    "/groups/{group_id}/redeliver",
    response_model=DeliveryResultResponse,
    summary="Redeliver a stuck digest",
    description="Send again a digest whose records stayed grouped after a failed send.",
    responses={
        401: {"description": "Unauthorized – invalid or missing API key"},
        404: {"description": "No grouped notifications for this group"},
    },
)
async def redeliver_group(
    group_id: str,
    db: Session = Depends(get_db),
) -> DeliveryResultResponse:
    coordinator = DigestDeliveryCoordinator(db)
    result = await coordinator.redeliver_group(group_id)
    if result is None:
        raise HTTPException(status_code=404, detail="No grouped notifications for this group")
    return DeliveryResultResponse(
        status=result.status.value,
        recipient_id=result.recipient_id,
        vessel_id=result.vessel_id,
        digest_type=result.digest_type,
        group_id=result.group_id,
        record_ids=result.record_ids,
        error=result.error,
    )
