"""Resolution of the users entitled to notifications for a vessel."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from vessel_digest.core.config import settings
from vessel_digest.models.user import User
from vessel_digest.repositories.user_repository import UserRepository


class RecipientResolver(Protocol):
    def eligible_recipients(
        self,
        vessel_id: UUID,
        exclude_user_id: UUID | None = None,
    ) -> list[User]: ...


class VesselRecipientResolver:
    """Recipients are users with an active elevated role on the vessel who opted in."""

    def __init__(self, db: Session, role_names: Iterable[str] | None = None):
        self.repo = UserRepository(db)
        self.role_names = set(role_names) if role_names is not None else settings.elevated_roles

    def eligible_recipients(
        self,
        vessel_id: UUID,
        exclude_user_id: UUID | None = None,
    ) -> list[User]:
        return self.repo.get_notifiable_for_vessel(
            vessel_id,
            sorted(self.role_names),
            exclude_user_id=exclude_user_id,
        )
