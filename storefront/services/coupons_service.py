# Overview: Coupon store; CRUD plus lookup by code and expiry checks.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Coupon
from ..validation import ConflictError, NotFoundError, ValidationError
from storefront.time_utils import utcnow
from .concurrency import begin_write, run_with_retry
from .sequence_service import next_id

COUPON_MUTABLE_FIELDS = ("code", "discount", "expiration_date")


class CouponNotFound(NotFoundError):
    message = "Coupon not found"


class CouponExpired(ValidationError):
    """Coupon exists but its expiration_date has passed."""


def _require_coupon(coupon_id: int) -> Coupon:
    coupon = db.session.get(Coupon, coupon_id)
    if coupon is None:
        raise CouponNotFound()
    return coupon


def _ensure_code_free(code: str, coupon_id: int | None = None) -> None:
    q = db.session.query(Coupon.id).filter(Coupon.code == code)
    if coupon_id is not None:
        q = q.filter(Coupon.id != coupon_id)
    if q.first() is not None:
        raise ConflictError("Coupon code already exists.")


def is_expired(coupon: Coupon, now: datetime | None = None) -> bool:
    if coupon.expiration_date is None:
        return False
    return coupon.expiration_date < (now or utcnow())


def list_coupons() -> list[dict]:
    return [c.to_dict() for c in db.session.query(Coupon).order_by(Coupon.id.asc()).all()]


def get_coupon(coupon_id: int) -> dict:
    return _require_coupon(coupon_id).to_dict()


def lookup_coupon(code: str) -> Coupon:
    """Exact, case-sensitive lookup by code."""
    coupon = db.session.query(Coupon).filter(Coupon.code == code).first()
    if coupon is None:
        raise CouponNotFound()
    return coupon


def lookup_usable_coupon(code: str, now: datetime | None = None) -> Coupon:
    """Lookup for apply/checkout: unknown -> CouponNotFound, past expiration -> CouponExpired."""
    coupon = lookup_coupon(code)
    if is_expired(coupon, now):
        raise CouponExpired("Coupon has expired")
    return coupon


def create_coupon(patch: dict) -> dict:
    _ensure_code_free(patch["code"])

    def _op() -> Coupon:
        begin_write()
        coupon = Coupon(
            id=next_id("coupons"),
            code=patch["code"],
            discount=patch["discount"],
            expiration_date=patch.get("expiration_date"),
        )
        db.session.add(coupon)
        db.session.commit()
        return coupon

    return run_with_retry(_op).to_dict()


def update_coupon(coupon_id: int, patch: dict) -> dict:
    """Carts keep the snapshot taken at apply time; edits here do not reach them."""
    coupon = _require_coupon(coupon_id)
    if "code" in patch and patch["code"] != coupon.code:
        _ensure_code_free(patch["code"], coupon_id)

    for key in COUPON_MUTABLE_FIELDS:
        if key in patch:
            setattr(coupon, key, patch[key])
    db.session.commit()
    return coupon.to_dict()


def delete_coupon(coupon_id: int) -> None:
    coupon = _require_coupon(coupon_id)
    db.session.delete(coupon)
    db.session.commit()
