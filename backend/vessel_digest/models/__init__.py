from vessel_digest.models.email_notification import (
    DigestType,
    EmailNotification,
    NotificationState,
)
from vessel_digest.models.user import User, VesselRoleAccess, VesselUserRole
from vessel_digest.models.vessel import Vessel

__all__ = [
    "DigestType",
    "EmailNotification",
    "NotificationState",
    "User",
    "Vessel",
    "VesselRoleAccess",
    "VesselUserRole",
]
