# storefront/services/products_service.py
"""
Products Service with company scoping

MULTI-TENANT: products belong to a company (company_id).
- list_products optionally filters by company_id
- create_product requires an existing company
- offer state (on_offer, original_price_cents) is never written here; see offers_service
"""
from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import CartLine, Company, Offer, Product, Review
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import begin_write, run_with_retry
from .sequence_service import next_id

PRODUCT_MUTABLE_FIELDS = {"name", "description", "price_cents", "stock", "category", "photo"}


class ProductNotFound(NotFoundError):
    message = "Product not found"


class CompanyNotFound(NotFoundError):
    message = "Company not found"


class InsufficientStockError(ConflictError):
    """Stock would drop below zero."""


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def require_product(product_id: int) -> Product:
    p = db.session.get(Product, product_id)
    if p is None:
        raise ProductNotFound()
    return p


def list_products(company_id: int | None = None) -> list[dict]:
    q = db.session.query(Product)
    if company_id is not None:
        q = q.filter(Product.company_id == company_id)
    return [p.to_dict() for p in q.order_by(Product.id.asc()).all()]


def get_product(product_id: int) -> dict:
    return require_product(product_id).to_dict()


def create_product(*, patch: dict, company_id: int | None) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        ValidationError: company_id missing
        CompanyNotFound: company_id does not resolve
    """
    if company_id is None:
        raise ValidationError("company_id is required")

    if db.session.get(Company, company_id) is None:
        raise CompanyNotFound()

    def _op() -> Product:
        begin_write()
        p = Product(
            id=next_id("products"),
            company_id=company_id,
            price_cents=0,
            stock=0,
            on_offer=False,
            original_price_cents=None,
        )
        apply_product_patch(p, patch)

        db.session.add(p)
        db.session.commit()
        return p

    return run_with_retry(_op).to_dict()


def update_product(*, product_id: int, patch: dict) -> dict:
    """
    Update catalog fields.

    Raises:
        ProductNotFound
        ConflictError: price change while an offer is active (the offer owns the price)
    """
    p = require_product(product_id)

    if "price_cents" in patch and p.on_offer and patch["price_cents"] != p.price_cents:
        raise ConflictError("Product has an active offer; deactivate it before changing the price.")

    apply_product_patch(p, patch)
    db.session.commit()
    return p.to_dict()


def delete_product(*, product_id: int) -> None:
    """
    Delete a product and its cart lines and reviews.

    Inactive offers stay as history. A product with an active offer cannot be
    deleted until the offer is removed or deactivated.
    """
    p = require_product(product_id)

    active = db.session.query(Offer.id).filter_by(product_id=product_id, active=True).first()
    if active is not None:
        raise ConflictError("Product has an active offer.", details={"offer_id": active[0]})

    db.session.query(CartLine).filter_by(product_id=product_id).delete(synchronize_session=False)
    db.session.query(Review).filter_by(product_id=product_id).delete(synchronize_session=False)
    db.session.delete(p)
    db.session.commit()


def decrement_stock(product_id: int, quantity: int) -> bool:
    """
    Conditional atomic decrement: only succeeds while stock >= quantity.

    Returns False when the product does not exist. Does not commit.

    Raises:
        InsufficientStockError
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        return True

    on_hand = db.session.query(Product.stock).filter_by(id=product_id).scalar()
    if on_hand is None:
        return False
    raise InsufficientStockError(
        "Insufficient stock",
        details={"product_id": product_id, "requested_quantity": quantity, "stock": on_hand},
    )


def adjust_stock(*, product_id: int, delta: int) -> dict:
    """Apply a signed stock delta atomically; never lets stock go negative."""
    if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
        raise ValidationError("delta must be a non-zero integer")

    def _op() -> Product:
        if delta < 0:
            if not decrement_stock(product_id, -delta):
                raise ProductNotFound()
        else:
            result = db.session.execute(
                update(Product)
                .where(Product.id == product_id)
                .values(stock=Product.stock + delta)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                raise ProductNotFound()
        db.session.commit()
        return require_product(product_id)

    try:
        p = run_with_retry(_op)
    except (NotFoundError, ConflictError):
        db.session.rollback()
        raise
    db.session.refresh(p)
    return p.to_dict()
