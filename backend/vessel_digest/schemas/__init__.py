from vessel_digest.schemas.email_notification import (
    AggregationEnqueuedResponse,
    DeliveryResultResponse,
    EmailNotificationResponse,
    NotificationStateCountsResponse,
)
from vessel_digest.schemas.vessel_event import IntakeResponse, VesselEventCreate

__all__ = [
    "AggregationEnqueuedResponse",
    "DeliveryResultResponse",
    "EmailNotificationResponse",
    "IntakeResponse",
    "NotificationStateCountsResponse",
    "VesselEventCreate",
]
