from vessel_digest.repositories.email_notification_repository import EmailNotificationRepository
from vessel_digest.repositories.user_repository import UserRepository
from vessel_digest.repositories.vessel_repository import VesselRepository

__all__ = [
    "EmailNotificationRepository",
    "UserRepository",
    "VesselRepository",
]
