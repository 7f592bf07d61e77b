# Overview: Flask API routes for product catalogs; parses input and returns JSON responses.

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..models import Catalog
from ..services import catalogs_service
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)

CATALOG_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

catalogs_bp = Blueprint("catalogs", __name__, url_prefix="/api/catalogs")


def _split_payload(data: dict) -> tuple[dict, list | None]:
    """product_ids is membership, not a column; validate it in the service."""
    data = dict(data)
    return data, data.pop("product_ids", None)


@catalogs_bp.route("", methods=["GET"])
def list_catalogs():
    try:
        return jsonify(catalogs_service.list_catalogs())
    except Exception:
        current_app.logger.exception("Failed to list catalogs")
        return jsonify({"error": "Internal server error"}), 500


@catalogs_bp.route("/<int:catalog_id>", methods=["GET"])
def get_catalog(catalog_id: int):
    try:
        return jsonify(catalogs_service.get_catalog(catalog_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@catalogs_bp.route("", methods=["POST"])
def create_catalog():
    """Body: {"name", "description"?, "product_ids"?: [int]}"""
    data, product_ids = _split_payload(request.get_json(silent=True) or {})
    try:
        patch = validate_payload(model=Catalog, payload=data, policy=CATALOG_POLICY, partial=False)
        result = catalogs_service.create_catalog(patch, product_ids)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create catalog")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 201


@catalogs_bp.route("/<int:catalog_id>", methods=["PUT"])
def update_catalog(catalog_id: int):
    data, product_ids = _split_payload(request.get_json(silent=True) or {})
    try:
        patch = validate_payload(model=Catalog, payload=data, policy=CATALOG_POLICY, partial=True)
        result = catalogs_service.update_catalog(catalog_id, patch, product_ids)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update catalog")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)


@catalogs_bp.route("/<int:catalog_id>", methods=["DELETE"])
def delete_catalog(catalog_id: int):
    try:
        catalogs_service.delete_catalog(catalog_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True})
