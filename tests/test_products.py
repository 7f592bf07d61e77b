# Overview: Pytest coverage for the product catalog service.

import pytest

from storefront.models import CartLine, Product, Review
from storefront.services import accounts_service, cart_service, offers_service, products_service, reviews_service
from storefront.services.products_service import InsufficientStockError, ProductNotFound
from storefront.validation import ConflictError, ValidationError


class TestCatalog:
    def test_create_defaults(self, db_session, mug):
        assert mug["price_cents"] == 1000
        assert mug["stock"] == 10
        assert mug["on_offer"] is False
        assert mug["original_price_cents"] is None

    def test_create_requires_company(self, db_session):
        with pytest.raises(ValidationError):
            products_service.create_product(patch={"name": "X", "price_cents": 1}, company_id=None)

    def test_list_filters_by_company(self, db_session, company, mug):
        other = accounts_service.create_company({"name": "Other", "email": "other@shop.test"})
        products_service.create_product(patch={"name": "Spoon", "price_cents": 50}, company_id=other["id"])

        names = [p["name"] for p in products_service.list_products(company_id=company["id"])]
        assert names == ["Mug"]
        assert len(products_service.list_products()) == 2

    def test_get_unknown(self, db_session):
        with pytest.raises(ProductNotFound):
            products_service.get_product(42)

    def test_update_ignores_offer_fields(self, db_session, mug):
        updated = products_service.update_product(
            product_id=mug["id"], patch={"name": "Big Mug", "on_offer": True}
        )
        assert updated["name"] == "Big Mug"
        assert updated["on_offer"] is False

    def test_price_change_blocked_while_on_offer(self, db_session, mug, offer_window):
        start, end = offer_window
        offers_service.create_offer({
            "product_id": mug["id"], "discount": 20, "offer_price_cents": 800,
            "start_date": start, "end_date": end,
        })
        with pytest.raises(ConflictError):
            products_service.update_product(product_id=mug["id"], patch={"price_cents": 1200})
        db_session.rollback()
        assert products_service.get_product(mug["id"])["price_cents"] == 800


class TestDelete:
    def test_delete_removes_cart_lines_and_reviews(self, db_session, mug, teapot, user):
        cart_service.add_item(user["id"], mug["id"], 1)
        cart_service.add_item(user["id"], teapot["id"], 1)
        reviews_service.create_review({"product_id": mug["id"], "rating": 4, "comment": "Solid"})

        products_service.delete_product(product_id=mug["id"])

        assert db_session.get(Product, mug["id"]) is None
        assert db_session.query(CartLine).filter_by(product_id=mug["id"]).count() == 0
        assert db_session.query(Review).count() == 0
        assert [line.product_id for line in cart_service.get_cart(user["id"]).lines] == [teapot["id"]]

    def test_delete_with_active_offer_conflicts(self, db_session, mug, offer_window):
        start, end = offer_window
        offer = offers_service.create_offer({
            "product_id": mug["id"], "discount": 10, "offer_price_cents": 900,
            "start_date": start, "end_date": end,
        })
        with pytest.raises(ConflictError) as exc:
            products_service.delete_product(product_id=mug["id"])
        assert exc.value.details == {"offer_id": offer["id"]}


class TestStock:
    def test_decrement_missing_product(self, db_session):
        assert products_service.decrement_stock(999, 1) is False
        db_session.rollback()

    def test_decrement_never_goes_negative(self, db_session, teapot):
        with pytest.raises(InsufficientStockError) as exc:
            products_service.decrement_stock(teapot["id"], 4)
        db_session.rollback()
        assert exc.value.details["stock"] == 3
        assert products_service.get_product(teapot["id"])["stock"] == 3

    def test_adjust_stock(self, db_session, teapot):
        assert products_service.adjust_stock(product_id=teapot["id"], delta=5)["stock"] == 8
        assert products_service.adjust_stock(product_id=teapot["id"], delta=-8)["stock"] == 0
        with pytest.raises(InsufficientStockError):
            products_service.adjust_stock(product_id=teapot["id"], delta=-1)

    def test_adjust_stock_rejects_zero_and_unknown(self, db_session, teapot):
        with pytest.raises(ValidationError):
            products_service.adjust_stock(product_id=teapot["id"], delta=0)
        with pytest.raises(ProductNotFound):
            products_service.adjust_stock(product_id=999, delta=1)
