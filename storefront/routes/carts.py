# Overview: Flask API routes for shopping carts; parses input and returns JSON responses.

# storefront/routes/carts.py
"""Cart routes. One cart per user, addressed by user_id."""

from flask import Blueprint, current_app, jsonify, request

from ..services import cart_service
from ..services.cart_service import cart_to_dict
from ..validation import NotFoundError, ValidationError


carts_bp = Blueprint("carts", __name__, url_prefix="/api/carts")


@carts_bp.get("/<int:user_id>")
def get_cart_route(user_id: int):
    """Get the user's cart, creating an empty one on first access."""
    try:
        cart = cart_service.get_cart(user_id)
        return jsonify(cart_to_dict(cart)), 200
    except Exception:
        current_app.logger.exception("Failed to load cart")
        return jsonify({"error": "Internal server error"}), 500


@carts_bp.put("/<int:user_id>")
def replace_cart_route(user_id: int):
    """
    Replace the whole cart.

    Body: {"items": [{"product_id", "quantity", ...}], "coupon_code": str | null}
    """
    try:
        data = request.get_json(silent=True) or {}
        cart = cart_service.replace_cart(user_id, data.get("items", []), data.get("coupon_code"))
        return jsonify(cart_to_dict(cart)), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to replace cart")
        return jsonify({"error": "Internal server error"}), 500


@carts_bp.post("/<int:user_id>")
def add_item_route(user_id: int):
    """
    Add a product. Adding a product already in the cart increases its quantity.

    Body: {"product_id", "quantity", "name"?, "price_cents"?, "photo"?, "is_promotion"?}
    """
    try:
        data = request.get_json(silent=True) or {}
        product_id = data.get("product_id")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            return jsonify({"error": "product_id required"}), 400

        created = cart_service.find_cart(user_id) is None
        cart = cart_service.add_item(
            user_id,
            product_id,
            data.get("quantity"),
            name=data.get("name"),
            price_cents=data.get("price_cents"),
            photo=data.get("photo"),
            is_promotion=data.get("is_promotion"),
        )
        return jsonify(cart_to_dict(cart)), 201 if created else 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add cart item")
        return jsonify({"error": "Internal server error"}), 500


@carts_bp.delete("/<int:user_id>/items/<int:product_id>")
def remove_item_route(user_id: int, product_id: int):
    try:
        cart = cart_service.remove_item(user_id, product_id)
        return jsonify(cart_to_dict(cart)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to remove cart item")
        return jsonify({"error": "Internal server error"}), 500


@carts_bp.put("/<int:user_id>/items/<int:product_id>")
def set_item_quantity_route(user_id: int, product_id: int):
    """Body: {"quantity": int > 0}"""
    try:
        data = request.get_json(silent=True) or {}
        cart = cart_service.set_item_quantity(user_id, product_id, data.get("quantity"))
        return jsonify(cart_to_dict(cart)), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update cart item")
        return jsonify({"error": "Internal server error"}), 500


@carts_bp.delete("/<int:user_id>")
def clear_cart_route(user_id: int):
    try:
        cart = cart_service.clear_cart(user_id)
        return jsonify(cart_to_dict(cart)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to clear cart")
        return jsonify({"error": "Internal server error"}), 500


@carts_bp.post("/<int:user_id>/apply-coupon")
def apply_coupon_route(user_id: int):
    """Body: {"code": str}. Unknown code -> 404, expired -> 400; the cart is left as it was."""
    try:
        data = request.get_json(silent=True) or {}
        cart, coupon = cart_service.apply_coupon(user_id, data.get("code"))
        return jsonify({"cart": cart_to_dict(cart), "coupon": coupon.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to apply coupon")
        return jsonify({"error": "Internal server error"}), 500
