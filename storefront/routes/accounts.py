# Overview: Flask API routes for companies, employees and users; parses input and returns JSON responses.

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..models import Company, Employee, User
from ..services import accounts_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)

COMPANY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "description", "phone", "logo_url"},
    required_on_create={"name", "email"},
)
USER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email"},
    required_on_create={"name", "email"},
)
EMPLOYEE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email"},
    required_on_create={"name", "email"},
)

accounts_bp = Blueprint("accounts", __name__, url_prefix="/api")


@accounts_bp.route("/companies", methods=["GET"])
def list_companies():
    return jsonify(accounts_service.list_companies())


@accounts_bp.route("/companies/<int:company_id>", methods=["GET"])
def get_company(company_id: int):
    try:
        return jsonify(accounts_service.get_company(company_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@accounts_bp.route("/companies", methods=["POST"])
def create_company():
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Company, payload=data, policy=COMPANY_POLICY, partial=False)
        result = accounts_service.create_company(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create company")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 201


@accounts_bp.route("/companies/<int:company_id>/employees", methods=["GET"])
def list_employees(company_id: int):
    try:
        return jsonify(accounts_service.list_employees(company_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@accounts_bp.route("/companies/<int:company_id>/employees/<int:employee_id>", methods=["GET"])
def get_employee(company_id: int, employee_id: int):
    try:
        return jsonify(accounts_service.get_employee(company_id, employee_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@accounts_bp.route("/companies/<int:company_id>/employees", methods=["POST"])
def create_employee(company_id: int):
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Employee, payload=data, policy=EMPLOYEE_POLICY, partial=False)
        result = accounts_service.create_employee(company_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 201


@accounts_bp.route("/companies/<int:company_id>/employees/<int:employee_id>", methods=["PUT"])
def update_employee(company_id: int, employee_id: int):
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Employee, payload=data, policy=EMPLOYEE_POLICY, partial=True)
        result = accounts_service.update_employee(company_id, employee_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update employee")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)


@accounts_bp.route("/companies/<int:company_id>/employees/<int:employee_id>", methods=["DELETE"])
def delete_employee(company_id: int, employee_id: int):
    try:
        accounts_service.delete_employee(company_id, employee_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True})


@accounts_bp.route("/users", methods=["GET"])
def list_users():
    return jsonify(accounts_service.list_users())


@accounts_bp.route("/users/<int:user_id>", methods=["GET"])
def get_user(user_id: int):
    try:
        return jsonify(accounts_service.get_user(user_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@accounts_bp.route("/users", methods=["POST"])
def create_user():
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=User, payload=data, policy=USER_POLICY, partial=False)
        result = accounts_service.create_user(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 201


@accounts_bp.route("/users/<int:user_id>", methods=["PUT"])
def update_user(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=User, payload=data, policy=USER_POLICY, partial=True)
        result = accounts_service.update_user(user_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)


@accounts_bp.route("/users/<int:user_id>", methods=["DELETE"])
def delete_user(user_id: int):
    try:
        accounts_service.delete_user(user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True})
