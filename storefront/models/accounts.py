from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Company(db.Model):
    """
    Tenant that owns products.

    MULTI-TENANT: Products carry company_id; listing can be filtered by it.
    Access-control policy is enforced outside this service.
    """
    __tablename__ = "companies"

    # Assigned from the "companies" counter, not autoincrement
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "description": self.description,
            "phone": self.phone,
            "logo_url": self.logo_url,
            "created_at": to_utc_z(self.created_at),
        }


class User(db.Model):
    """Shopper account. Owns one cart and any number of receipts."""
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }


class Employee(db.Model):
    """
    Staff member of a company.

    MULTI-TENANT: company_id is required; employees are always addressed
    through their company.
    """
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    company = db.relationship("Company", backref=db.backref("employees", lazy=True))

    def __repr__(self) -> str:
        return f"<Employee id={self.id} company_id={self.company_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }
