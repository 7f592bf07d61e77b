# Overview: Product reviews.

from __future__ import annotations

from ..extensions import db
from ..models import Product, Review
from ..validation import NotFoundError
from storefront.time_utils import utcnow
from .concurrency import begin_write, run_with_retry
from .products_service import ProductNotFound
from .sequence_service import next_id

REVIEW_MUTABLE_FIELDS = ("rating", "comment")


class ReviewNotFound(NotFoundError):
    message = "Review not found"


def _require_review(review_id: int) -> Review:
    review = db.session.get(Review, review_id)
    if review is None:
        raise ReviewNotFound()
    return review


def list_reviews(product_id: int | None = None) -> list[dict]:
    q = db.session.query(Review)
    if product_id is not None:
        q = q.filter(Review.product_id == product_id)
    return [r.to_dict() for r in q.order_by(Review.id.asc()).all()]


def create_review(patch: dict) -> dict:
    if db.session.get(Product, patch["product_id"]) is None:
        raise ProductNotFound()

    def _op() -> Review:
        begin_write()
        review = Review(
            id=next_id("reviews"),
            product_id=patch["product_id"],
            user_id=patch.get("user_id"),
            rating=patch["rating"],
            comment=patch["comment"],
            created_at=patch.get("created_at") or utcnow(),
        )
        db.session.add(review)
        db.session.commit()
        return review

    return run_with_retry(_op).to_dict()


def update_review(review_id: int, patch: dict) -> dict:
    review = _require_review(review_id)
    for key in REVIEW_MUTABLE_FIELDS:
        if key in patch:
            setattr(review, key, patch[key])
    db.session.commit()
    return review.to_dict()


def delete_review(review_id: int) -> None:
    review = _require_review(review_id)
    db.session.delete(review)
    db.session.commit()
