from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data.

    MULTI-TENANT: Products are scoped to a company via company_id.
    The id is global (one "products" counter), not per company.

    OFFER STATE:
    price_cents is always the current effective price. While an offer is
    active, original_price_cents holds the pre-discount price and on_offer is
    true; both are written only by the offer service and the expiry sweeper.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_company_name", "company_id", "name"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(100), nullable=True)
    photo = db.Column(db.String(512), nullable=True)

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    original_price_cents = db.Column(db.Integer, nullable=True)
    on_offer = db.Column(db.Boolean, nullable=False, default=False)

    stock = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    company = db.relationship("Company", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} company_id={self.company_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "photo": self.photo,
            "price_cents": self.price_cents,
            "original_price_cents": self.original_price_cents,
            "on_offer": self.on_offer,
            "stock": self.stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


catalog_products = db.Table(
    "catalog_products",
    db.Column("catalog_id", db.Integer, db.ForeignKey("catalogs.id"), primary_key=True),
    db.Column("product_id", db.Integer, db.ForeignKey("products.id"), primary_key=True),
)


class Catalog(db.Model):
    """
    Named grouping of products (e.g. "Winter teas").

    Membership only; a product can sit in any number of catalogs. Deleting a
    product drops it from every catalog through the association table.
    """
    __tablename__ = "catalogs"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    products = db.relationship(
        "Product",
        secondary=catalog_products,
        order_by="Product.id",
        lazy=True,
        backref=db.backref("catalogs", lazy=True),
    )

    def __repr__(self) -> str:
        return f"<Catalog id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "products": [{"id": p.id, "name": p.name} for p in self.products],
            "updated_at": to_utc_z(self.updated_at),
        }
