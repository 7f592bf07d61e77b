# Overview: Pytest coverage for checkout, stock decrements and receipts.

import pytest

from storefront.models import Receipt
from storefront.services import accounts_service, cart_service, checkout_service, coupons_service, products_service
from storefront.services.checkout_service import ReceiptNotFound, finalize_checkout
from storefront.services.coupons_service import CouponNotFound
from storefront.services.products_service import InsufficientStockError
from storefront.services.sequence_service import current_value
from storefront.validation import ValidationError


def _stock(product):
    return products_service.get_product(product["id"])["stock"]


class TestCartCheckout:
    def test_receipt_stock_and_cart(self, db_session, user, mug, teapot):
        cart_service.add_item(user["id"], mug["id"], 2)
        cart_service.add_item(user["id"], teapot["id"], 1)

        receipt = finalize_checkout(user["id"])

        assert receipt.id == 1
        assert receipt.user_id == user["id"]
        assert receipt.detail == "2 Mug, 1 Teapot"
        assert receipt.total_cents == 2 * 1000 + 2500
        assert _stock(mug) == 8
        assert _stock(teapot) == 2
        assert cart_service.get_cart(user["id"]).lines == []
        assert db_session.query(Receipt).count() == 1

    def test_cart_coupon_applies(self, db_session, user, mug):
        coupons_service.create_coupon({"code": "SAVE10", "discount": 10})
        cart_service.add_item(user["id"], mug["id"], 3)
        cart_service.apply_coupon(user["id"], "SAVE10")

        receipt = finalize_checkout(user["id"])

        assert receipt.total_cents == 2700
        assert cart_service.get_cart(user["id"]).applied_coupon is None

    def test_client_total_must_match(self, db_session, user, mug):
        cart_service.add_item(user["id"], mug["id"], 1)

        with pytest.raises(ValidationError):
            finalize_checkout(user["id"], total_cents=1)

        assert _stock(mug) == 10
        assert current_value("receipts") == 0
        assert len(cart_service.get_cart(user["id"]).lines) == 1

    def test_matching_client_total_is_accepted(self, db_session, user, mug):
        cart_service.add_item(user["id"], mug["id"], 1)
        assert finalize_checkout(user["id"], total_cents=1000).total_cents == 1000

    def test_empty_cart(self, db_session, user):
        with pytest.raises(ValidationError):
            finalize_checkout(user["id"])


class TestExplicitLines:
    def test_missing_product_is_listed_not_charged(self, db_session, user, mug):
        receipt = finalize_checkout(
            user["id"],
            line_items=[{"product_id": mug["id"], "quantity": 1}, {"product_id": 999, "quantity": 2}],
        )

        assert receipt.detail == "1 Mug, 2 Product not found"
        assert receipt.total_cents == 1000
        assert _stock(mug) == 9

    def test_duplicate_lines_are_merged(self, db_session, user, mug):
        receipt = finalize_checkout(
            user["id"],
            line_items=[{"product_id": mug["id"], "quantity": 1}, {"product_id": mug["id"], "quantity": 2}],
        )
        assert receipt.detail == "3 Mug"
        assert _stock(mug) == 7

    def test_explicit_coupon_code(self, db_session, user, mug):
        coupons_service.create_coupon({"code": "HALF", "discount": 50})
        receipt = finalize_checkout(
            user["id"], line_items=[{"product_id": mug["id"], "quantity": 1}], coupon_code="HALF"
        )
        assert receipt.total_cents == 500

    def test_unknown_coupon_code(self, db_session, user, mug):
        with pytest.raises(CouponNotFound):
            finalize_checkout(user["id"], line_items=[{"product_id": mug["id"], "quantity": 1}], coupon_code="NOPE")
        assert _stock(mug) == 10

    def test_insufficient_stock_rolls_back_everything(self, db_session, user, mug, teapot):
        cart_service.add_item(user["id"], mug["id"], 2)
        cart_service.add_item(user["id"], teapot["id"], 4)

        with pytest.raises(InsufficientStockError) as exc:
            finalize_checkout(user["id"])

        assert exc.value.details["product_id"] == teapot["id"]
        assert _stock(mug) == 10
        assert _stock(teapot) == 3
        assert current_value("receipts") == 0
        assert db_session.query(Receipt).count() == 0
        assert len(cart_service.get_cart(user["id"]).lines) == 2

    def test_bad_quantity(self, db_session, user, mug):
        with pytest.raises(ValidationError):
            finalize_checkout(user["id"], line_items=[{"product_id": mug["id"], "quantity": -1}])


class TestReceipts:
    def test_list_includes_user_name(self, db_session, user, mug):
        finalize_checkout(user["id"], line_items=[{"product_id": mug["id"], "quantity": 1}])
        finalize_checkout(42, line_items=[{"product_id": mug["id"], "quantity": 1}])

        names = [r["user_name"] for r in checkout_service.list_receipts()]
        assert names == ["Ana", "User not found"]
        assert len(checkout_service.list_receipts(user_id=user["id"])) == 1

    def test_receipt_survives_user_deletion(self, db_session, user, mug):
        receipt = finalize_checkout(user["id"], line_items=[{"product_id": mug["id"], "quantity": 1}])
        receipt_id = receipt.id
        accounts_service.delete_user(user["id"])

        assert checkout_service.list_receipts()[0]["user_name"] == "User not found"
        assert checkout_service.get_receipt(receipt_id)["total_cents"] == 1000

    def test_delete(self, db_session, user, mug):
        receipt = finalize_checkout(user["id"], line_items=[{"product_id": mug["id"], "quantity": 1}])
        receipt_id = receipt.id
        checkout_service.delete_receipt(receipt_id)
        with pytest.raises(ReceiptNotFound):
            checkout_service.get_receipt(receipt_id)
