# Overview: Flask API routes for checkout and receipts; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..services import checkout_service
from ..validation import ConflictError, NotFoundError, ValidationError


receipts_bp = Blueprint("receipts", __name__, url_prefix="/api/receipts")


@receipts_bp.post("")
def create_receipt_route():
    """
    Check out.

    Body: {"user_id", "products"?: [{"product_id", "quantity"}], "coupon_code"?, "total_cents"?}
    Without "products" the user's cart is checked out. total_cents, when sent,
    must match the server-side total.
    """
    try:
        data = request.get_json(silent=True) or {}
        user_id = data.get("user_id")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            return jsonify({"error": "user_id required"}), 400

        receipt = checkout_service.finalize_checkout(
            user_id,
            line_items=data.get("products"),
            coupon_code=data.get("coupon_code"),
            total_cents=data.get("total_cents"),
        )
        return jsonify({"receipt": receipt.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to create receipt")
        return jsonify({"error": "Internal server error"}), 500


@receipts_bp.get("")
def list_receipts_route():
    user_id = request.args.get("user_id", type=int)
    try:
        return jsonify(checkout_service.list_receipts(user_id=user_id)), 200
    except Exception:
        current_app.logger.exception("Failed to list receipts")
        return jsonify({"error": "Internal server error"}), 500


@receipts_bp.get("/<int:receipt_id>")
def get_receipt_route(receipt_id: int):
    try:
        return jsonify(checkout_service.get_receipt(receipt_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@receipts_bp.delete("/<int:receipt_id>")
def delete_receipt_route(receipt_id: int):
    try:
        checkout_service.delete_receipt(receipt_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete receipt")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"ok": True}), 200
