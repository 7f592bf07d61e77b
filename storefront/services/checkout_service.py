# storefront/services/checkout_service.py
"""
Checkout - turns a purchase into a receipt.

One transaction covers: receipt id allocation, receipt insert, stock
decrements and cart clearing. Either all of it is committed or none of it.

PRICING: the total is recomputed from current catalog prices and the coupon
percentage. A client-supplied total is only compared against it.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, Receipt, User
from ..validation import NotFoundError, ValidationError, require_positive_quantity
from storefront.time_utils import utcnow
from .cart_service import (
    CART_RETRYABLE,
    find_cart,
    ensure_cart,
    apply_percentage_discount,
    empty_cart,
)
from .concurrency import begin_write, run_with_retry
from .coupons_service import CouponExpired, lookup_usable_coupon
from .products_service import decrement_stock
from .sequence_service import next_id

MISSING_PRODUCT_NAME = "Product not found"
MISSING_USER_NAME = "User not found"


class ReceiptNotFound(NotFoundError):
    message = "Receipt not found"


def _merge_line_items(line_items: list) -> list[tuple[int, int]]:
    if not isinstance(line_items, list):
        raise ValidationError("products must be a list")
    merged: dict[int, int] = {}
    for raw in line_items:
        if not isinstance(raw, dict):
            raise ValidationError("Each product must be an object")
        product_id = raw.get("product_id")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError("product_id must be an integer")
        quantity = require_positive_quantity(raw.get("quantity"))
        merged[product_id] = merged.get(product_id, 0) + quantity
    return list(merged.items())


def _coupon_discount(cart, coupon_code: str | None, use_cart_coupon: bool) -> int:
    """Percentage to apply. The cart's snapshot wins over the live coupon when codes match."""
    now = utcnow()
    if coupon_code is None:
        if not use_cart_coupon or cart is None or cart.coupon_code is None:
            return 0
        coupon_code = cart.coupon_code

    if cart is not None and cart.coupon_code == coupon_code:
        if cart.coupon_expiration_date is not None and cart.coupon_expiration_date < now:
            raise CouponExpired("Coupon has expired")
        return cart.coupon_discount or 0

    return lookup_usable_coupon(coupon_code, now).discount


def build_detail(lines: list[tuple[int, int]], products: dict[int, Product]) -> str:
    """'2 Mug, 1 Teapot' using current catalog names."""
    parts = []
    for product_id, quantity in lines:
        product = products.get(product_id)
        parts.append(f"{quantity} {product.name if product else MISSING_PRODUCT_NAME}")
    return ", ".join(parts)


def finalize_checkout(
    user_id: int,
    line_items: list | None = None,
    coupon_code: str | None = None,
    total_cents: int | None = None,
) -> Receipt:
    """
    Finalize a purchase for user_id.

    line_items defaults to the user's cart (and its coupon snapshot).
    Products that no longer exist are listed as "Product not found", priced
    at zero and skipped for stock; they do not fail the checkout.

    Raises:
        ValidationError: nothing to buy, bad quantities, total mismatch
        CouponNotFound / CouponExpired
        InsufficientStockError: stock would go negative (nothing is committed)
    """
    explicit_lines = _merge_line_items(line_items) if line_items is not None else None
    if total_cents is not None and (isinstance(total_cents, bool) or not isinstance(total_cents, int)):
        raise ValidationError("total_cents must be an integer")

    def _op() -> Receipt:
        begin_write()
        cart = find_cart(user_id)

        if explicit_lines is not None:
            lines = explicit_lines
        else:
            lines = [(line.product_id, line.quantity) for line in cart.lines] if cart else []
        if not lines:
            raise ValidationError("Nothing to check out")

        discount_pct = _coupon_discount(cart, coupon_code, use_cart_coupon=explicit_lines is None)

        product_ids = [product_id for product_id, _ in lines]
        products = {
            p.id: p for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
        }

        subtotal = sum(products[pid].price_cents * qty for pid, qty in lines if pid in products)
        total = subtotal - apply_percentage_discount(subtotal, discount_pct)
        if total_cents is not None and total_cents != total:
            raise ValidationError(f"Total mismatch: expected {total} cents")

        receipt = Receipt(
            id=next_id("receipts"),
            user_id=user_id,
            emitted_at=utcnow(),
            detail=build_detail(lines, products),
            total_cents=total,
        )
        db.session.add(receipt)

        for product_id, quantity in lines:
            if not decrement_stock(product_id, quantity):
                current_app.logger.warning(
                    "Checkout receipt %s: product %s not found, stock not decremented",
                    receipt.id, product_id,
                )

        empty_cart(cart if cart is not None else ensure_cart(user_id))

        db.session.commit()
        return receipt

    try:
        return run_with_retry(_op, retry_on=CART_RETRYABLE)
    except Exception:
        db.session.rollback()
        raise


def list_receipts(user_id: int | None = None) -> list[dict]:
    q = db.session.query(Receipt, User.name).outerjoin(User, User.id == Receipt.user_id)
    if user_id is not None:
        q = q.filter(Receipt.user_id == user_id)
    out = []
    for receipt, user_name in q.order_by(Receipt.id.asc()).all():
        data = receipt.to_dict()
        data["user_name"] = user_name if user_name is not None else MISSING_USER_NAME
        out.append(data)
    return out


def get_receipt(receipt_id: int) -> dict:
    receipt = db.session.get(Receipt, receipt_id)
    if receipt is None:
        raise ReceiptNotFound()
    return receipt.to_dict()


def delete_receipt(receipt_id: int) -> None:
    receipt = db.session.get(Receipt, receipt_id)
    if receipt is None:
        raise ReceiptNotFound()
    db.session.delete(receipt)
    db.session.commit()
