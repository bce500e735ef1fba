"""User repository for data access."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from vessel_digest.models.user import User, VesselRoleAccess, VesselUserRole


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: UUID) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_notifiable_for_vessel(
        self,
        vessel_id: UUID,
        role_names: Iterable[str],
        exclude_user_id: UUID | None = None,
    ) -> list[User]:
        """Users opted in to vessel notifications through an active role in ``role_names``."""
        query = (
            self.db.query(User)
            .join(VesselUserRole, VesselUserRole.user_id == User.id)
            .join(VesselRoleAccess, VesselRoleAccess.id == VesselUserRole.vessel_role_access_id)
            .filter(
                VesselUserRole.vessel_id == vessel_id,
                VesselUserRole.is_active == True,  # noqa: E712
                VesselRoleAccess.is_active == True,  # noqa: E712
                VesselRoleAccess.name.in_(list(role_names)),
                User.vessel_admin_notification == True,  # noqa: E712
            )
        )
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.distinct().order_by(User.id.asc()).all()
