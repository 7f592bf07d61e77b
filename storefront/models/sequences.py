from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Counter(db.Model):
    """
    Atomic per-entity id sequences.

    WHY: Entity ids are human-facing sequential numbers. Allocation must be an
    atomic increment-and-read, never a client-side read + 1.
    """
    __tablename__ = "counters"

    name = db.Column(db.String(64), primary_key=True)
    next_value = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "next_value": self.next_value,
            "updated_at": to_utc_z(self.updated_at),
        }
