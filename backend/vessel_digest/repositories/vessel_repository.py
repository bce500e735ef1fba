"""Vessel repository for data access."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from vessel_digest.models.vessel import Vessel


class VesselRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, vessel_id: UUID) -> Vessel | None:
        return self.db.query(Vessel).filter(Vessel.id == vessel_id).first()
