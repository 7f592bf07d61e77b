# Overview: Flask API routes for product reviews; parses input and returns JSON responses.

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..models import Review
from ..services import reviews_service
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_review,
    validate_payload,
)

REVIEW_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "user_id", "rating", "comment", "created_at"},
    required_on_create={"product_id", "rating", "comment"},
)
REVIEW_UPDATE_POLICY = ModelValidationPolicy(writable_fields={"rating", "comment"})

reviews_bp = Blueprint("reviews", __name__, url_prefix="/api/reviews")


@reviews_bp.route("", methods=["GET"])
def list_reviews():
    product_id = request.args.get("product_id", type=int)
    return jsonify(reviews_service.list_reviews(product_id=product_id))


@reviews_bp.route("", methods=["POST"])
def create_review():
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Review, payload=data, policy=REVIEW_POLICY, partial=False)
        enforce_rules_review(patch)
        result = reviews_service.create_review(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create review")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 201


@reviews_bp.route("/<int:review_id>", methods=["PUT"])
def update_review(review_id: int):
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Review, payload=data, policy=REVIEW_UPDATE_POLICY, partial=True)
        enforce_rules_review(patch)
        result = reviews_service.update_review(review_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(result)


@reviews_bp.route("/<int:review_id>", methods=["DELETE"])
def delete_review(review_id: int):
    try:
        reviews_service.delete_review(review_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True})
