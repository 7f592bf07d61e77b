# Overview: Product catalogs (named product groupings) and their membership.

from __future__ import annotations

from ..extensions import db
from ..models import Catalog, Product
from ..validation import NotFoundError, ValidationError
from storefront.time_utils import utcnow
from .concurrency import begin_write, run_with_retry
from .products_service import ProductNotFound
from .sequence_service import next_id

CATALOG_MUTABLE_FIELDS = ("name", "description")


class CatalogNotFound(NotFoundError):
    message = "Catalog not found"


def _require_catalog(catalog_id: int) -> Catalog:
    catalog = db.session.get(Catalog, catalog_id)
    if catalog is None:
        raise CatalogNotFound()
    return catalog


def _resolve_products(product_ids) -> list[Product]:
    """
    Load products for a membership list, dropping repeats and keeping order.

    Raises:
        ValidationError: not a list of integers
        ProductNotFound: any id does not resolve (nothing is written)
    """
    if not isinstance(product_ids, list):
        raise ValidationError("product_ids must be a list")
    unique_ids: list[int] = []
    for product_id in product_ids:
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError("product_ids must contain integers")
        if product_id not in unique_ids:
            unique_ids.append(product_id)

    if not unique_ids:
        return []
    found = {p.id: p for p in db.session.query(Product).filter(Product.id.in_(unique_ids)).all()}
    missing = [pid for pid in unique_ids if pid not in found]
    if missing:
        raise ProductNotFound(f"Product {missing[0]} not found")
    return [found[pid] for pid in unique_ids]


def list_catalogs() -> list[dict]:
    return [c.to_dict() for c in db.session.query(Catalog).order_by(Catalog.id.asc()).all()]


def get_catalog(catalog_id: int) -> dict:
    return _require_catalog(catalog_id).to_dict()


def create_catalog(patch: dict, product_ids: list | None = None) -> dict:
    products = _resolve_products(product_ids or [])

    def _op() -> Catalog:
        begin_write()
        catalog = Catalog(
            id=next_id("catalogs"),
            name=patch["name"],
            description=patch.get("description"),
        )
        catalog.products = list(products)
        db.session.add(catalog)
        db.session.commit()
        return catalog

    return run_with_retry(_op).to_dict()


def update_catalog(catalog_id: int, patch: dict, product_ids: list | None = None) -> dict:
    """product_ids replaces the membership when given; None leaves it as is."""
    catalog = _require_catalog(catalog_id)
    products = _resolve_products(product_ids) if product_ids is not None else None

    for key in CATALOG_MUTABLE_FIELDS:
        if key in patch:
            setattr(catalog, key, patch[key])
    if products is not None:
        catalog.products = products
    catalog.updated_at = utcnow()
    db.session.commit()
    return catalog.to_dict()


def delete_catalog(catalog_id: int) -> None:
    catalog = _require_catalog(catalog_id)
    db.session.delete(catalog)
    db.session.commit()
