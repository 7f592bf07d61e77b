# storefront/services/cart_service.py
"""
Cart Service - one pending cart per user.

CONCURRENCY:
- get-or-create relies on the unique user_id; a lost insert race is retried
  and finds the winner's cart.
- add_item increments an existing line with a single UPDATE
  (quantity = quantity + :q) instead of read/modify/write; a lost insert
  race on (cart_id, product_id) is retried and takes the UPDATE path.
- set_item_quantity is a single positional UPDATE.

Line name/price/photo are display snapshots. Checkout prices from the catalog.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Cart, CartLine, Coupon, Product
from ..validation import MAX_PRICE_CENTS, NotFoundError, ValidationError, require_positive_quantity
from .concurrency import RETRYABLE, begin_write, run_with_retry
from .coupons_service import lookup_usable_coupon
from .products_service import ProductNotFound

CART_RETRYABLE = RETRYABLE + (IntegrityError,)


class CartNotFound(NotFoundError):
    message = "Cart not found"


class CartItemNotFound(NotFoundError):
    message = "Product not found in cart"


def apply_percentage_discount(subtotal_cents: int, discount: int | None) -> int:
    """Discount amount in cents for a percentage, rounded half up."""
    if not discount:
        return 0
    amount = (Decimal(subtotal_cents) * Decimal(discount) / Decimal(100)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return min(int(amount), subtotal_cents)


def cart_totals(cart: Cart) -> dict:
    subtotal = sum(line.price_cents * line.quantity for line in cart.lines)
    discount = apply_percentage_discount(subtotal, cart.coupon_discount)
    return {
        "subtotal_cents": subtotal,
        "discount_cents": discount,
        "total_cents": subtotal - discount,
    }


def cart_to_dict(cart: Cart) -> dict:
    data = cart.to_dict()
    data["totals"] = cart_totals(cart)
    return data


def find_cart(user_id: int) -> Cart | None:
    return db.session.query(Cart).filter_by(user_id=user_id).first()


def _require_cart(user_id: int) -> Cart:
    cart = find_cart(user_id)
    if cart is None:
        raise CartNotFound()
    return cart


def ensure_cart(user_id: int) -> Cart:
    """Get-or-create without committing. IntegrityError on flush means another request created it."""
    cart = find_cart(user_id)
    if cart is not None:
        return cart
    cart = Cart(user_id=user_id)
    db.session.add(cart)
    db.session.flush()
    return cart


def _set_coupon_snapshot(cart: Cart, coupon: Coupon | None) -> None:
    if coupon is None:
        cart.coupon_code = None
        cart.coupon_discount = None
        cart.coupon_expiration_date = None
        return
    cart.coupon_code = coupon.code
    cart.coupon_discount = coupon.discount
    cart.coupon_expiration_date = coupon.expiration_date


def _snapshot_line(cart: Cart, product: Product, quantity: int, overrides: dict) -> CartLine:
    name = overrides.get("name")
    price_cents = overrides.get("price_cents")
    is_promotion = overrides.get("is_promotion")
    return CartLine(
        cart_id=cart.id,
        product_id=product.id,
        quantity=quantity,
        name=name if name else product.name,
        price_cents=price_cents if price_cents is not None else product.price_cents,
        photo=overrides.get("photo") or product.photo,
        is_promotion=is_promotion if is_promotion is not None else product.on_offer,
    )


def _normalize_overrides(raw: dict) -> dict:
    """Display snapshot overrides sent by the client. Absent or null keys fall back to the catalog."""
    overrides = {}
    price_cents = raw.get("price_cents")
    if price_cents is not None:
        if isinstance(price_cents, bool) or not isinstance(price_cents, int):
            raise ValidationError("price_cents must be an integer")
        if not 0 <= price_cents <= MAX_PRICE_CENTS:
            raise ValidationError(f"price_cents must be between 0 and {MAX_PRICE_CENTS}")
        overrides["price_cents"] = price_cents
    for key in ("name", "photo"):
        value = raw.get(key)
        if value is not None:
            if not isinstance(value, str):
                raise ValidationError(f"{key} must be a string")
            overrides[key] = value.strip()
    is_promotion = raw.get("is_promotion")
    if is_promotion is not None:
        if not isinstance(is_promotion, bool):
            raise ValidationError("is_promotion must be a boolean")
        overrides["is_promotion"] = is_promotion
    return overrides


def _normalize_item(raw) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError("Each item must be an object")
    product_id = raw.get("product_id")
    if isinstance(product_id, bool) or not isinstance(product_id, int):
        raise ValidationError("product_id must be an integer")
    item = {
        "product_id": product_id,
        "quantity": require_positive_quantity(raw.get("quantity")),
    }
    item.update(_normalize_overrides(raw))
    return item


def get_cart(user_id: int) -> Cart:
    """Return the user's cart, creating an empty one on first read."""
    def _op() -> Cart:
        cart = ensure_cart(user_id)
        db.session.commit()
        return cart

    return run_with_retry(_op, retry_on=CART_RETRYABLE)


def replace_cart(user_id: int, items: list, coupon_code: str | None = None) -> Cart:
    """
    Overwrite the cart wholesale (upsert).

    Repeated product ids in items are merged into one line. The coupon is
    resolved by code and snapshotted server-side; None clears it.
    """
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    merged: dict[int, dict] = {}
    for raw in items:
        item = _normalize_item(raw)
        if item["product_id"] in merged:
            merged[item["product_id"]]["quantity"] += item["quantity"]
        else:
            merged[item["product_id"]] = item

    coupon = lookup_usable_coupon(coupon_code) if coupon_code else None

    def _op() -> Cart:
        begin_write()
        products = {}
        for product_id in merged:
            product = db.session.get(Product, product_id)
            if product is None:
                raise ProductNotFound(f"Product {product_id} not found")
            products[product_id] = product

        cart = ensure_cart(user_id)
        db.session.query(CartLine).filter_by(cart_id=cart.id).delete(synchronize_session=False)
        for product_id, item in merged.items():
            db.session.add(_snapshot_line(cart, products[product_id], item["quantity"], item))
        _set_coupon_snapshot(cart, coupon)

        db.session.commit()
        return cart

    try:
        cart = run_with_retry(_op, retry_on=CART_RETRYABLE)
    except NotFoundError:
        db.session.rollback()
        raise
    db.session.expire(cart)
    return cart


def add_item(
    user_id: int,
    product_id: int,
    quantity: int,
    *,
    name: str | None = None,
    price_cents: int | None = None,
    photo: str | None = None,
    is_promotion: bool | None = None,
) -> Cart:
    """
    Add quantity of a product. An existing line is incremented, never duplicated.

    Raises:
        ValidationError: quantity not > 0, or a malformed price_cents/name/photo/is_promotion
        ProductNotFound
    """
    quantity = require_positive_quantity(quantity)
    overrides = _normalize_overrides(
        {"name": name, "price_cents": price_cents, "photo": photo, "is_promotion": is_promotion}
    )

    def _op() -> Cart:
        begin_write()
        product = db.session.get(Product, product_id)
        if product is None:
            raise ProductNotFound()

        cart = ensure_cart(user_id)
        result = db.session.execute(
            update(CartLine)
            .where(CartLine.cart_id == cart.id, CartLine.product_id == product_id)
            .values(quantity=CartLine.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            db.session.add(_snapshot_line(cart, product, quantity, overrides))
            db.session.flush()

        db.session.commit()
        return cart

    try:
        cart = run_with_retry(_op, retry_on=CART_RETRYABLE)
    except NotFoundError:
        db.session.rollback()
        raise
    db.session.expire(cart)
    return cart


def remove_item(user_id: int, product_id: int) -> Cart:
    """Drop a product's line. Absent product is a no-op; absent cart is CartNotFound."""
    cart = _require_cart(user_id)
    db.session.query(CartLine).filter_by(cart_id=cart.id, product_id=product_id).delete(
        synchronize_session=False
    )
    db.session.commit()
    return cart


def set_item_quantity(user_id: int, product_id: int, quantity: int) -> Cart:
    quantity = require_positive_quantity(quantity)
    cart = _require_cart(user_id)

    result = db.session.execute(
        update(CartLine)
        .where(CartLine.cart_id == cart.id, CartLine.product_id == product_id)
        .values(quantity=quantity)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        db.session.rollback()
        raise CartItemNotFound()

    db.session.commit()
    return cart


def clear_cart(user_id: int) -> Cart:
    """Empty an existing cart (lines and coupon). Checkout uses empty_cart instead."""
    cart = _require_cart(user_id)
    empty_cart(cart)
    db.session.commit()
    return cart


def empty_cart(cart: Cart) -> None:
    """Does not commit."""
    db.session.query(CartLine).filter_by(cart_id=cart.id).delete(synchronize_session=False)
    _set_coupon_snapshot(cart, None)
    db.session.expire(cart, ["lines"])


def apply_coupon(user_id: int, code: str) -> tuple[Cart, Coupon]:
    """
    Snapshot a coupon onto the user's cart, creating the cart if needed.

    Raises:
        CouponNotFound: cart left untouched
        CouponExpired: cart left untouched
    """
    if not code or not isinstance(code, str):
        raise ValidationError("code is required")
    coupon = lookup_usable_coupon(code)

    def _op() -> Cart:
        cart = ensure_cart(user_id)
        _set_coupon_snapshot(cart, coupon)
        db.session.commit()
        return cart

    cart = run_with_retry(_op, retry_on=CART_RETRYABLE)
    return cart, coupon
