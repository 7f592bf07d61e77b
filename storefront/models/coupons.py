from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Coupon(db.Model):
    """Discount code. code is unique and looked up case-sensitively."""
    __tablename__ = "coupons"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    code = db.Column(db.String(64), nullable=False, unique=True)
    discount = db.Column(db.Integer, nullable=False)  # percentage, 0..100
    expiration_date = db.Column(db.DateTime, nullable=True)  # NULL = never expires

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Coupon id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "discount": self.discount,
            "expiration_date": to_utc_z(self.expiration_date),
            "created_at": to_utc_z(self.created_at),
        }
