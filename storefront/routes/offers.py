# Overview: Flask API routes for offers; parses input and returns JSON responses.

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..models import Offer
from ..services import offers_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_offer,
    validate_payload,
)

OFFER_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "discount", "offer_price_cents", "start_date", "end_date", "active"},
    required_on_create={"product_id", "discount", "offer_price_cents", "start_date", "end_date"},
)
OFFER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=OFFER_POLICY.writable_fields - {"product_id"},
)

offers_bp = Blueprint("offers", __name__, url_prefix="/api/offers")


@offers_bp.route("", methods=["GET"])
def list_offers():
    active_only = request.args.get("active_only", "false").lower() == "true"
    try:
        return jsonify(offers_service.list_offers(active_only=active_only))
    except Exception:
        current_app.logger.exception("Failed to list offers")
        return jsonify({"error": "Internal server error"}), 500


@offers_bp.route("/<int:offer_id>", methods=["GET"])
def get_offer(offer_id: int):
    try:
        return jsonify(offers_service.get_offer(offer_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@offers_bp.route("", methods=["POST"])
def create_offer():
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Offer, payload=data, policy=OFFER_POLICY, partial=False)
        enforce_rules_offer(patch)
        result = offers_service.create_offer(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to create offer")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 201


@offers_bp.route("/<int:offer_id>", methods=["PUT"])
def update_offer(offer_id: int):
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Offer, payload=data, policy=OFFER_UPDATE_POLICY, partial=True)
        enforce_rules_offer(patch)
        result = offers_service.update_offer(offer_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to update offer")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)


@offers_bp.route("/<int:offer_id>", methods=["DELETE"])
def delete_offer(offer_id: int):
    try:
        offers_service.delete_offer(offer_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete offer")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"ok": True})
