# Overview: Pytest coverage for cart mutations, coupon snapshots and totals.

from datetime import timedelta

import pytest

from storefront.services import cart_service, coupons_service, offers_service
from storefront.services.cart_service import (
    CartItemNotFound,
    CartNotFound,
    apply_percentage_discount,
    cart_to_dict,
)
from storefront.services.coupons_service import CouponExpired, CouponNotFound
from storefront.services.products_service import ProductNotFound
from storefront.time_utils import utcnow
from storefront.validation import ValidationError


def _quantities(cart):
    return {line.product_id: line.quantity for line in cart.lines}


class TestAddItem:
    def test_first_add_creates_cart_with_catalog_snapshot(self, db_session, user, mug):
        cart = cart_service.add_item(user["id"], mug["id"], 2)

        [line] = cart.lines
        assert line.quantity == 2
        assert line.name == "Mug"
        assert line.price_cents == 1000
        assert line.photo == "mug.png"
        assert line.is_promotion is False

    def test_adding_again_merges_quantities(self, db_session, user, mug):
        cart_service.add_item(user["id"], mug["id"], 1)
        cart = cart_service.add_item(user["id"], mug["id"], 2)

        assert _quantities(cart) == {mug["id"]: 3}

    def test_product_on_offer_is_flagged(self, db_session, user, mug, offer_window):
        start, end = offer_window
        offers_service.create_offer({
            "product_id": mug["id"], "discount": 20, "offer_price_cents": 800,
            "start_date": start, "end_date": end,
        })

        [line] = cart_service.add_item(user["id"], mug["id"], 1).lines

        assert line.is_promotion is True
        assert line.price_cents == 800

    def test_quantity_must_be_positive(self, db_session, user, mug):
        with pytest.raises(ValidationError):
            cart_service.add_item(user["id"], mug["id"], 0)
        with pytest.raises(ValidationError):
            cart_service.add_item(user["id"], mug["id"], True)

    def test_unknown_product(self, db_session, user):
        with pytest.raises(ProductNotFound):
            cart_service.add_item(user["id"], 999, 1)
        assert cart_service.find_cart(user["id"]) is None

    def test_display_overrides_are_type_checked(self, db_session, user, mug):
        with pytest.raises(ValidationError):
            cart_service.add_item(user["id"], mug["id"], 1, price_cents=-500)
        with pytest.raises(ValidationError):
            cart_service.add_item(user["id"], mug["id"], 1, price_cents="abc")
        with pytest.raises(ValidationError):
            cart_service.add_item(user["id"], mug["id"], 1, name=5)
        with pytest.raises(ValidationError):
            cart_service.add_item(user["id"], mug["id"], 1, is_promotion="no")
        assert cart_service.find_cart(user["id"]) is None

    def test_valid_overrides_replace_the_snapshot(self, db_session, user, mug):
        [line] = cart_service.add_item(
            user["id"], mug["id"], 1, name="  Big mug ", price_cents=0, is_promotion=True,
        ).lines

        assert line.name == "Big mug"
        assert line.price_cents == 0
        assert line.is_promotion is True
        assert line.photo == "mug.png"


class TestEditCart:
    def test_remove_absent_product_is_a_no_op(self, db_session, user, mug, teapot):
        cart_service.add_item(user["id"], mug["id"], 1)

        cart = cart_service.remove_item(user["id"], teapot["id"])

        assert _quantities(cart) == {mug["id"]: 1}

    def test_remove_without_cart(self, db_session, user, mug):
        with pytest.raises(CartNotFound):
            cart_service.remove_item(user["id"], mug["id"])

    def test_set_quantity(self, db_session, user, mug):
        cart_service.add_item(user["id"], mug["id"], 1)

        cart = cart_service.set_item_quantity(user["id"], mug["id"], 5)

        assert _quantities(cart) == {mug["id"]: 5}

    def test_set_quantity_errors(self, db_session, user, mug, teapot):
        cart_service.add_item(user["id"], mug["id"], 1)
        with pytest.raises(ValidationError):
            cart_service.set_item_quantity(user["id"], mug["id"], 0)
        with pytest.raises(CartItemNotFound):
            cart_service.set_item_quantity(user["id"], teapot["id"], 2)
        assert _quantities(cart_service.get_cart(user["id"])) == {mug["id"]: 1}

    def test_replace_merges_duplicates_and_sets_coupon(self, db_session, user, mug, teapot):
        coupons_service.create_coupon({"code": "SAVE10", "discount": 10})
        cart_service.add_item(user["id"], teapot["id"], 1)

        cart = cart_service.replace_cart(
            user["id"],
            [
                {"product_id": mug["id"], "quantity": 1},
                {"product_id": mug["id"], "quantity": 2, "name": "Custom"},
            ],
            "SAVE10",
        )

        assert _quantities(cart) == {mug["id"]: 3}
        assert cart.lines[0].name == "Mug"
        assert cart.applied_coupon["code"] == "SAVE10"

    def test_replace_requires_a_real_boolean_flag(self, db_session, user, mug):
        cart_service.add_item(user["id"], mug["id"], 1)
        with pytest.raises(ValidationError):
            cart_service.replace_cart(
                user["id"], [{"product_id": mug["id"], "quantity": 1, "is_promotion": "false"}],
            )
        assert cart_service.get_cart(user["id"]).lines[0].is_promotion is False

    def test_replace_with_unknown_product_leaves_cart(self, db_session, user, mug):
        cart_service.add_item(user["id"], mug["id"], 1)
        with pytest.raises(ProductNotFound):
            cart_service.replace_cart(user["id"], [{"product_id": 999, "quantity": 1}])
        assert _quantities(cart_service.get_cart(user["id"])) == {mug["id"]: 1}

    def test_clear(self, db_session, user, mug):
        coupons_service.create_coupon({"code": "SAVE10", "discount": 10})
        cart_service.add_item(user["id"], mug["id"], 1)
        cart_service.apply_coupon(user["id"], "SAVE10")

        cart = cart_service.clear_cart(user["id"])

        assert cart.lines == []
        assert cart.applied_coupon is None

    def test_clear_without_cart(self, db_session, user):
        with pytest.raises(CartNotFound):
            cart_service.clear_cart(user["id"])

    def test_get_cart_creates_empty(self, db_session, user):
        data = cart_to_dict(cart_service.get_cart(user["id"]))
        assert data["user_id"] == user["id"]
        assert data["items"] == []
        assert data["totals"] == {"subtotal_cents": 0, "discount_cents": 0, "total_cents": 0}


class TestCoupons:
    def test_apply_snapshots_coupon(self, db_session, user, mug):
        coupons_service.create_coupon({"code": "SAVE10", "discount": 10})
        cart_service.add_item(user["id"], mug["id"], 2)

        cart, coupon = cart_service.apply_coupon(user["id"], "SAVE10")

        assert coupon.code == "SAVE10"
        assert cart_to_dict(cart)["totals"] == {
            "subtotal_cents": 2000,
            "discount_cents": 200,
            "total_cents": 1800,
        }

    def test_unknown_coupon_leaves_snapshot(self, db_session, user):
        coupons_service.create_coupon({"code": "SAVE10", "discount": 10})
        cart_service.apply_coupon(user["id"], "SAVE10")

        with pytest.raises(CouponNotFound):
            cart_service.apply_coupon(user["id"], "NOPE")

        assert cart_service.get_cart(user["id"]).applied_coupon["code"] == "SAVE10"

    def test_expired_coupon_rejected(self, db_session, user):
        coupons_service.create_coupon({
            "code": "OLD", "discount": 50, "expiration_date": utcnow() - timedelta(minutes=1),
        })
        with pytest.raises(CouponExpired):
            cart_service.apply_coupon(user["id"], "OLD")
        assert cart_service.find_cart(user["id"]) is None


@pytest.mark.parametrize(
    "subtotal, discount, expected",
    [
        (1000, 0, 0),
        (1000, None, 0),
        (1000, 10, 100),
        (999, 50, 500),
        (1001, 15, 150),
        (1000, 100, 1000),
    ],
)
def test_percentage_discount_rounds_half_up(subtotal, discount, expected):
    assert apply_percentage_discount(subtotal, discount) == expected
