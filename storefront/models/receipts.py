from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Receipt(db.Model):
    """
    Immutable record of a completed checkout.

    detail is a human-readable summary ("2 Mug, 1 Teapot") built from the
    catalog names at checkout time; it is not meant to be replayed.
    """
    __tablename__ = "receipts"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    emitted_at = db.Column(db.DateTime, nullable=False)
    detail = db.Column(db.Text, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<Receipt id={self.id} user_id={self.user_id} total_cents={self.total_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "emitted_at": to_utc_z(self.emitted_at),
            "detail": self.detail,
            "total_cents": self.total_cents,
        }
