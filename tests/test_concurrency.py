"""Races on the coupon usage counter and on stock pools.

Each worker thread runs a full order through its own session against the
same file-backed database.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from sqlmodel import select

from storefront.errors import InsufficientStockError
from storefront.models import Order, User
from storefront.schemas.checkout_schemas import ShippingAddress
from storefront.schemas.pos_schemas import PosOrderItem, PosOrderRequest

ADDRESS = ShippingAddress(address="12 High St", city="Leeds", postal_code="LS1", country="GB")


def run_concurrently(func, args_list):
    """Start every call at once; return (results, errors)."""
    barrier = threading.Barrier(len(args_list))

    def worker(args):
        barrier.wait()
        try:
            return func(*args), None
        except Exception as e:
            return None, e

    with ThreadPoolExecutor(max_workers=len(args_list)) as pool:
        outcomes = list(pool.map(worker, args_list))

    return [r for r, _ in outcomes if r is not None], [e for _, e in outcomes if e is not None]


class TestCouponUsageRace:
    def test_cap_is_never_exceeded(self, session, assembler, make_product, make_coupon, add_to_cart):
        limit, extra = 3, 5
        coupon = make_coupon(code="FIRST3", type="fixed", value=10, usage_limit=limit)
        product = make_product(price=100, stock=100)

        users = []
        for n in range(limit + extra):
            user = User(first_name=f"Buyer{n}", email=f"buyer{n}@example.com")
            session.add(user)
            session.commit()
            add_to_cart(user, product, quantity=1)
            users.append(user)

        orders, errors = run_concurrently(
            lambda user_id: assembler.checkout(user_id, ADDRESS, coupon_code="FIRST3"),
            [(u.id,) for u in users],
        )

        assert errors == []
        assert len(orders) == limit + extra

        discounted = [o for o in orders if o.discount > 0]
        assert len(discounted) == limit
        assert all(o.coupon_id == coupon.id for o in discounted)
        assert all(o.total == 100 for o in orders if o.discount == 0)

        session.refresh(coupon)
        assert coupon.used_count == limit


class TestStockRace:
    def test_only_fitting_requests_succeed(self, session, assembler, customer, make_product):
        product = make_product(price=20, stock=50, pos_stock=5)

        def sell_two():
            return assembler.create_pos_order(
                PosOrderRequest(
                    customer_id=customer.id,
                    items=[PosOrderItem(product_id=product.id, quantity=2)],
                    stock_type="showroom",
                )
            )

        results, errors = run_concurrently(sell_two, [()] * 6)

        assert len(results) == 2
        assert len(errors) == 4
        assert all(isinstance(e, InsufficientStockError) for e in errors)

        session.refresh(product)
        assert product.pos_stock == 1
        assert product.stock == 50
        assert len(session.exec(select(Order)).all()) == 2

    def test_website_stock_never_negative(self, session, assembler, make_product, add_to_cart):
        product = make_product(price=20, stock=3, pos_stock=0)

        users = []
        for n in range(5):
            user = User(first_name=f"Buyer{n}", email=f"stock{n}@example.com")
            session.add(user)
            session.commit()
            add_to_cart(user, product, quantity=1)
            users.append(user)

        orders, errors = run_concurrently(
            lambda user_id: assembler.checkout(user_id, ADDRESS),
            [(u.id,) for u in users],
        )

        assert len(orders) == 3
        assert len(errors) == 2
        assert all(isinstance(e, InsufficientStockError) for e in errors)

        session.refresh(product)
        assert product.stock == 0
