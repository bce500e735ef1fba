"""User and vessel role models consulted to resolve notification recipients."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, func

from vessel_digest.core.database import Base
from vessel_digest.models.shared import UUIDType, generate_uuid


class User(Base):
    __tablename__ = "users"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    vessel_admin_notification = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VesselRoleAccess(Base):
    """Role tier definition (normal, moderator, supervisor, administrator)."""

    __tablename__ = "vessel_role_accesses"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(50), nullable=False, unique=True)
    display_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class VesselUserRole(Base):
    """Assignment of a user to a vessel with a given role tier."""

    __tablename__ = "vessel_user_roles"
    __table_args__ = (
        Index("ix_vessel_user_roles_vessel_active", "vessel_id", "is_active"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(
        UUIDType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    vessel_id = Column(
        UUIDType,
        ForeignKey("vessels.id", ondelete="CASCADE"),
        nullable=False,
    )
    vessel_role_access_id = Column(
        UUIDType,
        ForeignKey("vessel_role_accesses.id", ondelete="RESTRICT"),
        nullable=False,
    )
    is_active = Column(Boolean, nullable=False, default=True)
