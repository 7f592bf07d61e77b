# Overview: Company (tenant), employee and user account records.

from __future__ import annotations

from ..extensions import db
from ..models import Company, Employee, User
from ..validation import ConflictError, NotFoundError
from .concurrency import begin_write, run_with_retry
from .products_service import CompanyNotFound
from .sequence_service import next_id

USER_MUTABLE_FIELDS = ("name", "email")
EMPLOYEE_MUTABLE_FIELDS = ("name", "email")


class UserNotFound(NotFoundError):
    message = "User not found"


class EmployeeNotFound(NotFoundError):
    message = "Employee not found"


def _ensure_email_free(model, email: str, entity_id: int | None = None) -> None:
    q = db.session.query(model.id).filter(model.email == email)
    if entity_id is not None:
        q = q.filter(model.id != entity_id)
    if q.first() is not None:
        raise ConflictError("Email already registered.")


def list_companies() -> list[dict]:
    return [c.to_dict() for c in db.session.query(Company).order_by(Company.id.asc()).all()]


def get_company(company_id: int) -> dict:
    company = db.session.get(Company, company_id)
    if company is None:
        raise CompanyNotFound()
    return company.to_dict()


def create_company(patch: dict) -> dict:
    _ensure_email_free(Company, patch["email"])

    def _op() -> Company:
        begin_write()
        company = Company(id=next_id("companies"), **patch)
        db.session.add(company)
        db.session.commit()
        return company

    return run_with_retry(_op).to_dict()


def list_users() -> list[dict]:
    return [u.to_dict() for u in db.session.query(User).order_by(User.id.asc()).all()]


def _require_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFound()
    return user


def get_user(user_id: int) -> dict:
    return _require_user(user_id).to_dict()


def create_user(patch: dict) -> dict:
    _ensure_email_free(User, patch["email"])

    def _op() -> User:
        begin_write()
        user = User(id=next_id("users"), name=patch["name"], email=patch["email"])
        db.session.add(user)
        db.session.commit()
        return user

    return run_with_retry(_op).to_dict()


def update_user(user_id: int, patch: dict) -> dict:
    user = _require_user(user_id)
    if "email" in patch and patch["email"] != user.email:
        _ensure_email_free(User, patch["email"], user_id)
    for key in USER_MUTABLE_FIELDS:
        if key in patch:
            setattr(user, key, patch[key])
    db.session.commit()
    return user.to_dict()


def delete_user(user_id: int) -> None:
    """Receipts keep the user_id; listings then show "User not found"."""
    user = _require_user(user_id)
    db.session.delete(user)
    db.session.commit()


def _require_company(company_id: int) -> Company:
    company = db.session.get(Company, company_id)
    if company is None:
        raise CompanyNotFound()
    return company


def _require_employee(company_id: int, employee_id: int) -> Employee:
    """An employee of another company is reported as not found."""
    _require_company(company_id)
    employee = db.session.get(Employee, employee_id)
    if employee is None or employee.company_id != company_id:
        raise EmployeeNotFound()
    return employee


def list_employees(company_id: int) -> list[dict]:
    _require_company(company_id)
    q = db.session.query(Employee).filter(Employee.company_id == company_id)
    return [e.to_dict() for e in q.order_by(Employee.id.asc()).all()]


def get_employee(company_id: int, employee_id: int) -> dict:
    return _require_employee(company_id, employee_id).to_dict()


def create_employee(company_id: int, patch: dict) -> dict:
    """
    Raises:
        CompanyNotFound: checked before an id is allocated
        ConflictError: email already used by another employee
    """
    _require_company(company_id)
    _ensure_email_free(Employee, patch["email"])

    def _op() -> Employee:
        begin_write()
        employee = Employee(
            id=next_id("employees"),
            company_id=company_id,
            name=patch["name"],
            email=patch["email"],
        )
        db.session.add(employee)
        db.session.commit()
        return employee

    return run_with_retry(_op).to_dict()


def update_employee(company_id: int, employee_id: int, patch: dict) -> dict:
    employee = _require_employee(company_id, employee_id)
    if "email" in patch and patch["email"] != employee.email:
        _ensure_email_free(Employee, patch["email"], employee_id)
    for key in EMPLOYEE_MUTABLE_FIELDS:
        if key in patch:
            setattr(employee, key, patch[key])
    db.session.commit()
    return employee.to_dict()


def delete_employee(company_id: int, employee_id: int) -> None:
    employee = _require_employee(company_id, employee_id)
    db.session.delete(employee)
    db.session.commit()
