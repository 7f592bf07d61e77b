# storefront/services/offers_service.py
"""
Offer lifecycle.

Every change to a product's offer state goes through this module or the
expiry sweeper:

    activate:  original_price_cents = price_cents
               price_cents          = offer.offer_price_cents
               on_offer             = True
    restore:   price_cents          = original_price_cents
               original_price_cents = None
               on_offer             = False

At most one active offer per product. A second active offer is rejected with
ConflictError; it never supersedes the first.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Offer, Product
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import begin_write, lock_for_update, run_with_retry
from .products_service import ProductNotFound
from .sequence_service import next_id

OFFER_MUTABLE_FIELDS = ("discount", "offer_price_cents", "start_date", "end_date", "active")


class OfferNotFound(NotFoundError):
    message = "Offer not found"


def _locked_product(product_id: int) -> Product | None:
    return lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()


def _check_dates(start_date, end_date) -> None:
    if end_date <= start_date:
        raise ValidationError("end_date must be after start_date")


def _ensure_no_other_active(product_id: int, offer_id: int | None = None) -> None:
    q = db.session.query(Offer.id).filter(Offer.product_id == product_id, Offer.active.is_(True))
    if offer_id is not None:
        q = q.filter(Offer.id != offer_id)
    existing = q.first()
    if existing is not None:
        raise ConflictError(
            "Product already has an active offer",
            details={"product_id": product_id, "offer_id": existing[0]},
        )


def activate_product_offer(product: Product, offer: Offer) -> None:
    if product.original_price_cents is None:
        product.original_price_cents = product.price_cents
    product.price_cents = offer.offer_price_cents
    product.on_offer = True


def restore_product_price(product: Product | None) -> bool:
    """Revert a product to its pre-offer price. Returns True if a price was restored."""
    if product is None:
        return False
    restored = False
    if product.original_price_cents is not None:
        product.price_cents = product.original_price_cents
        restored = True
    product.original_price_cents = None
    product.on_offer = False
    return restored


def _offer_with_product_name(offer: Offer, product_name: str | None) -> dict:
    data = offer.to_dict()
    data["product_name"] = product_name if product_name is not None else "Product not found"
    return data


def list_offers(active_only: bool = False) -> list[dict]:
    q = (
        db.session.query(Offer, Product.name)
        .outerjoin(Product, Product.id == Offer.product_id)
    )
    if active_only:
        q = q.filter(Offer.active.is_(True))
    return [_offer_with_product_name(o, name) for o, name in q.order_by(Offer.id.asc()).all()]


def get_offer(offer_id: int) -> dict:
    offer = db.session.get(Offer, offer_id)
    if offer is None:
        raise OfferNotFound()
    product = db.session.get(Product, offer.product_id)
    return _offer_with_product_name(offer, product.name if product else None)


def create_offer(patch: dict) -> dict:
    """
    Create an offer and, if active, move the product onto the offer price.

    The product is checked before an id is allocated, so an unknown product
    consumes no counter value.

    Raises:
        ProductNotFound
        ConflictError: product already has an active offer
        ValidationError: end_date not after start_date
    """
    product_id = patch["product_id"]
    _check_dates(patch["start_date"], patch["end_date"])
    active = patch.get("active")
    if active is None:
        active = True

    def _op() -> Offer:
        begin_write()
        product = _locked_product(product_id)
        if product is None:
            raise ProductNotFound()
        if active:
            _ensure_no_other_active(product_id)

        offer = Offer(
            id=next_id("offers"),
            product_id=product_id,
            discount=patch["discount"],
            offer_price_cents=patch["offer_price_cents"],
            start_date=patch["start_date"],
            end_date=patch["end_date"],
            active=active,
        )
        db.session.add(offer)
        if active:
            activate_product_offer(product, offer)

        db.session.commit()
        return offer

    try:
        return run_with_retry(_op).to_dict()
    except (NotFoundError, ConflictError):
        db.session.rollback()
        raise


def update_offer(offer_id: int, patch: dict) -> dict:
    """
    Edit an offer; the product follows the new active flag and offer price.

    active -> inactive restores the product price, inactive -> active captures
    it again (with the same one-active-offer check as creation).
    """
    def _op() -> Offer:
        begin_write()
        offer = lock_for_update(db.session.query(Offer).filter_by(id=offer_id)).first()
        if offer is None:
            raise OfferNotFound()

        was_active = offer.active
        _check_dates(patch.get("start_date", offer.start_date), patch.get("end_date", offer.end_date))

        for key in OFFER_MUTABLE_FIELDS:
            if key in patch and patch[key] is not None:
                setattr(offer, key, patch[key])

        product = _locked_product(offer.product_id)
        if offer.active and not was_active:
            if product is None:
                raise ProductNotFound()
            _ensure_no_other_active(offer.product_id, offer.id)
            activate_product_offer(product, offer)
        elif was_active and not offer.active:
            restore_product_price(product)
        elif offer.active and product is not None:
            product.price_cents = offer.offer_price_cents

        db.session.commit()
        return offer

    try:
        return run_with_retry(_op).to_dict()
    except (NotFoundError, ConflictError, ValidationError):
        db.session.rollback()
        raise


def delete_offer(offer_id: int) -> None:
    """
    Delete an offer, restoring the product price if the offer was active.

    A product that no longer exists is skipped silently.
    """
    def _op() -> None:
        begin_write()
        offer = lock_for_update(db.session.query(Offer).filter_by(id=offer_id)).first()
        if offer is None:
            raise OfferNotFound()

        if offer.active:
            restore_product_price(_locked_product(offer.product_id))

        db.session.delete(offer)
        db.session.commit()

    try:
        run_with_retry(_op)
    except OfferNotFound:
        db.session.rollback()
        raise
