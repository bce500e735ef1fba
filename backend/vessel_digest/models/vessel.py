"""Vessel model, read only here for display data."""

from sqlalchemy import Column, DateTime, String, func

from vessel_digest.core.database import Base
from vessel_digest.models.shared import UUIDType, generate_uuid


class Vessel(Base):
    __tablename__ = "vessels"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    registration_number = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
