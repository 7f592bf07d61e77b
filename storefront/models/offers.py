from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Offer(db.Model):
    """
    Time-bounded discount attached to one product.

    At most one active offer per product; enforced by the offer service.
    discount is informational (percentage); offer_price_cents is what the
    product is sold for while the offer is active.
    """
    __tablename__ = "offers"
    __table_args__ = (
        db.CheckConstraint("end_date > start_date", name="ck_offers_date_order"),
        db.Index("ix_offers_active_end", "active", "end_date"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    # No FK: offers may outlive their product as history
    product_id = db.Column(db.Integer, nullable=False, index=True)

    discount = db.Column(db.Integer, nullable=False, default=0)
    offer_price_cents = db.Column(db.Integer, nullable=False)

    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)

    active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<Offer id={self.id} product_id={self.product_id} active={self.active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "discount": self.discount,
            "offer_price_cents": self.offer_price_cents,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
            "active": self.active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
