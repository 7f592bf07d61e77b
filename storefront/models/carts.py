from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Cart(db.Model):
    """
    One pending cart per user.

    The applied coupon is stored as a snapshot (code, discount, expiration)
    copied from the coupon at apply time, not as a reference.
    """
    __tablename__ = "carts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, unique=True)

    coupon_code = db.Column(db.String(64), nullable=True)
    coupon_discount = db.Column(db.Integer, nullable=True)
    coupon_expiration_date = db.Column(db.DateTime, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    lines = db.relationship(
        "CartLine",
        backref="cart",
        lazy=True,
        order_by="CartLine.id",
        cascade="all, delete-orphan",
    )

    @property
    def applied_coupon(self) -> dict | None:
        if self.coupon_code is None:
            return None
        return {
            "code": self.coupon_code,
            "discount": self.coupon_discount,
            "expiration_date": to_utc_z(self.coupon_expiration_date),
        }

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "items": [line.to_dict() for line in self.lines],
            "applied_coupon": self.applied_coupon,
            "updated_at": to_utc_z(self.updated_at),
        }


class CartLine(db.Model):
    """Cart line with name/price/photo captured when the product was added."""
    __tablename__ = "cart_lines"
    __table_args__ = (
        db.UniqueConstraint("cart_id", "product_id", name="uq_cart_lines_cart_product"),
        db.CheckConstraint("quantity > 0", name="ck_cart_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("carts.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    photo = db.Column(db.String(512), nullable=True)
    is_promotion = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "name": self.name,
            "price_cents": self.price_cents,
            "photo": self.photo,
            "is_promotion": self.is_promotion,
        }
