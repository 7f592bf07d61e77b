# Overview: Flask API routes for coupons; parses input and returns JSON responses.

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..models import Coupon
from ..services import coupons_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_coupon,
    validate_payload,
)

COUPON_POLICY = ModelValidationPolicy(
    writable_fields={"code", "discount", "expiration_date"},
    required_on_create={"code", "discount"},
)

coupons_bp = Blueprint("coupons", __name__, url_prefix="/api/coupons")


@coupons_bp.route("", methods=["GET"])
def list_coupons():
    try:
        return jsonify(coupons_service.list_coupons())
    except Exception:
        current_app.logger.exception("Failed to list coupons")
        return jsonify({"error": "Internal server error"}), 500


@coupons_bp.route("/<int:coupon_id>", methods=["GET"])
def get_coupon(coupon_id: int):
    try:
        return jsonify(coupons_service.get_coupon(coupon_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@coupons_bp.route("", methods=["POST"])
def create_coupon():
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Coupon, payload=data, policy=COUPON_POLICY, partial=False)
        enforce_rules_coupon(patch)
        result = coupons_service.create_coupon(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create coupon")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 201


@coupons_bp.route("/<int:coupon_id>", methods=["PUT"])
def update_coupon(coupon_id: int):
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Coupon, payload=data, policy=COUPON_POLICY, partial=True)
        enforce_rules_coupon(patch)
        result = coupons_service.update_coupon(coupon_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update coupon")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)


@coupons_bp.route("/<int:coupon_id>", methods=["DELETE"])
def delete_coupon(coupon_id: int):
    try:
        coupons_service.delete_coupon(coupon_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete coupon")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"ok": True})
