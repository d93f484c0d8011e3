"""Tests for cart checkout through the order assembler."""

from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from storefront.errors import InsufficientStockError, PersistenceError, ValidationError
from storefront.models import CartItem, Order, OrderItem, StoreSettings
from storefront.schemas.checkout_schemas import ShippingAddress
from storefront.services import order_service
from storefront.utils.cache_helpers import cart_key, product_key

DHAKA = ShippingAddress(
    address="House 12, Road 5",
    city="Dhaka",
    region="Dhaka",
    postal_code="1205",
    country="BD",
)


class TestCheckoutTotals:
    def test_total_matches_components(
        self, session, assembler, customer, make_product, make_tax_rate, make_coupon, add_to_cart
    ):
        make_tax_rate("BD", rate=5, is_default=True)
        make_tax_rate("BD", region="Dhaka", rate=7.5)
        session.add(StoreSettings(id=1, shipping_cost=60))
        session.commit()
        make_coupon(code="CAP80", value=10, max_discount=80)

        product = make_product(price=500, stock=5)
        add_to_cart(customer, product, quantity=2)

        order = assembler.checkout(customer.id, DHAKA, coupon_code="CAP80")

        assert order.subtotal == 1000
        assert order.discount == 80
        assert order.tax_rate == 7.5
        assert order.tax == 75
        assert order.shipping == 60
        assert order.total == pytest.approx(order.subtotal - order.discount + order.tax + order.shipping)
        assert order.total == 1055
        assert order.status == "pending"
        assert order.is_pos is False

    def test_variation_modifiers_priced_in(
        self, assembler, customer, make_product, add_to_cart
    ):
        product = make_product(price=100, options={"Size": {"S": 0, "XL": 25.5}})
        add_to_cart(customer, product, quantity=2, variations={"Size": "XL", "Engraving": "RB"})

        order = assembler.checkout(customer.id, DHAKA)

        line = order.items[0]
        assert line.price == 125.5
        assert line.variations == {"Size": "XL", "Engraving": "RB"}
        assert order.subtotal == 251

    def test_default_shipping_without_store_settings(self, engine, customer, make_product, add_to_cart):
        assembler = order_service.OrderAssembler(engine, default_shipping_cost=40)
        add_to_cart(customer, make_product(price=10), quantity=1)

        order = assembler.checkout(customer.id, DHAKA)

        assert order.shipping == 40
        assert order.total == 50

    def test_fixed_coupon_cannot_push_total_negative(
        self, assembler, customer, make_product, make_coupon, add_to_cart
    ):
        make_coupon(code="BIG", type="fixed", value=1000)
        add_to_cart(customer, make_product(price=100), quantity=1)

        order = assembler.checkout(customer.id, DHAKA, coupon_code="BIG")

        assert order.discount == 1000
        assert order.total == 0


class TestCheckoutEffects:
    def test_lines_stock_and_cart(self, session, assembler, customer, make_product, add_to_cart):
        lamp = make_product(name="Desk Lamp", price=40, stock=5, pos_stock=5)
        pen = make_product(name="Pen", price=2.5, stock=100, pos_stock=7)
        add_to_cart(customer, lamp, quantity=2)
        add_to_cart(customer, pen, quantity=10)

        order = assembler.checkout(customer.id, DHAKA)

        assert sorted((i.product_name, i.quantity) for i in order.items) == [("Desk Lamp", 2), ("Pen", 10)]
        assert order.payments == []

        session.refresh(lamp)
        session.refresh(pen)
        assert (lamp.stock, lamp.pos_stock) == (3, 5)
        assert (pen.stock, pen.pos_stock) == (90, 7)

        remaining = session.exec(select(CartItem).where(CartItem.user_id == customer.id)).all()
        assert remaining == []

    def test_line_price_frozen_at_order_time(self, session, assembler, customer, make_product, add_to_cart):
        product = make_product(price=40)
        add_to_cart(customer, product, quantity=1)

        order = assembler.checkout(customer.id, DHAKA)

        product.price = 99
        session.add(product)
        session.commit()

        item = session.exec(select(OrderItem).where(OrderItem.order_id == order.id)).one()
        assert item.price == 40

    def test_cache_invalidated(self, assembler, cache, customer, make_product, add_to_cart):
        product = make_product()
        add_to_cart(customer, product)
        cache.set(cart_key(customer.id), {"items": []})
        cache.set(product_key(product.id), {"stock": 10})

        assembler.checkout(customer.id, DHAKA)

        assert cache.get(cart_key(customer.id)) is None
        assert cache.get(product_key(product.id)) is None

    def test_invalid_coupon_is_skipped(self, session, assembler, customer, make_product, make_coupon, add_to_cart):
        coupon = make_coupon(code="MIN", value=10, min_purchase=10_000)
        add_to_cart(customer, make_product(price=100), quantity=1)

        order = assembler.checkout(customer.id, DHAKA, coupon_code="MIN")

        assert order.discount == 0
        assert order.coupon_id is None
        session.refresh(coupon)
        assert coupon.used_count == 0

    def test_coupon_recorded_on_order(self, session, assembler, customer, make_product, make_coupon, add_to_cart):
        coupon = make_coupon(code="TEN", value=10, usage_limit=10)
        add_to_cart(customer, make_product(price=100), quantity=1)

        order = assembler.checkout(customer.id, DHAKA, coupon_code="TEN")

        assert order.coupon_id == coupon.id
        session.refresh(coupon)
        assert coupon.used_count == 1


class TestCheckoutFailures:
    def test_empty_cart(self, assembler, customer):
        with pytest.raises(ValidationError, match="Cart is empty"):
            assembler.checkout(customer.id, DHAKA)

    def test_missing_address_fields(self, assembler, customer, make_product, add_to_cart):
        add_to_cart(customer, make_product())
        address = DHAKA.model_copy(update={"city": " ", "postal_code": ""})

        with pytest.raises(ValidationError) as exc:
            assembler.checkout(customer.id, address)
        assert "city" in str(exc.value)
        assert "postal_code" in str(exc.value)

    def test_non_positive_quantity(self, assembler, customer, make_product, add_to_cart):
        add_to_cart(customer, make_product(), quantity=0)

        with pytest.raises(ValidationError):
            assembler.checkout(customer.id, DHAKA)

    def test_stock_failure_leaves_nothing_behind(
        self, session, assembler, customer, make_product, make_coupon, add_to_cart
    ):
        coupon = make_coupon(code="TEN", value=10, usage_limit=5)
        plenty = make_product(name="Pen", price=2, stock=100)
        scarce = make_product(name="Desk Lamp", price=40, stock=1)
        add_to_cart(customer, plenty, quantity=3)
        add_to_cart(customer, scarce, quantity=2)

        with pytest.raises(InsufficientStockError) as exc:
            assembler.checkout(customer.id, DHAKA, coupon_code="TEN")
        assert exc.value.product_id == scarce.id

        session.refresh(plenty)
        session.refresh(coupon)
        assert plenty.stock == 100
        assert coupon.used_count == 0
        assert session.exec(select(Order)).all() == []
        assert len(session.exec(select(CartItem)).all()) == 2

    def test_stock_lost_between_check_and_write(
        self, session, assembler, customer, make_product, make_coupon, add_to_cart
    ):
        coupon = make_coupon(code="TEN", value=10, usage_limit=5)
        first = make_product(name="Pen", price=2, stock=100)
        second = make_product(name="Desk Lamp", price=40, stock=5)
        add_to_cart(customer, first, quantity=3)
        add_to_cart(customer, second, quantity=2)

        real_reserve = order_service.reserve_stock

        def reserve_then_lose_race(session_, product_id, pool, quantity):
            if product_id == second.id:
                raise InsufficientStockError(product_id, "Desk Lamp", pool.value, 0, quantity)
            return real_reserve(session_, product_id, pool, quantity)

        with mock.patch.object(order_service, "reserve_stock", side_effect=reserve_then_lose_race):
            with pytest.raises(InsufficientStockError):
                assembler.checkout(customer.id, DHAKA, coupon_code="TEN")

        session.refresh(first)
        session.refresh(coupon)
        assert first.stock == 100
        assert coupon.used_count == 0
        assert session.exec(select(Order)).all() == []
        assert session.exec(select(OrderItem)).all() == []

    def test_store_failure_rolls_back(self, session, assembler, customer, make_product, add_to_cart):
        product = make_product(stock=5)
        add_to_cart(customer, product, quantity=1)

        with mock.patch.object(
            order_service, "reserve_stock", side_effect=OperationalError("UPDATE", {}, Exception("disk I/O error"))
        ):
            with pytest.raises(PersistenceError):
                assembler.checkout(customer.id, DHAKA)

        session.refresh(product)
        assert product.stock == 5
        assert session.exec(select(Order)).all() == []
        assert len(session.exec(select(CartItem)).all()) == 1
