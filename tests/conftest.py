"""Pytest fixtures for the storefront order engine tests."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from storefront.database import build_engine, create_db_and_tables
from storefront.main import create_app
from storefront.models import (
    CartItem,
    Coupon,
    Product,
    ProductVariation,
    TaxRate,
    User,
    VariationOption,
)
from storefront.services.order_service import OrderAssembler
from storefront.utils.cache_helpers import ResponseCache
from storefront.utils.token import issue_token

NOW = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so separate threads see one database."""
    engine = build_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def cache():
    return ResponseCache(ttl=3600)


@pytest.fixture
def assembler(engine, cache):
    """Assembler with a frozen clock."""
    return OrderAssembler(engine, cache=cache, default_shipping_cost=0.0, clock=lambda: NOW)


@pytest.fixture
def client(engine, cache):
    app = create_app(engine=engine, cache=cache)
    return TestClient(app)


@pytest.fixture
def customer(session):
    user = User(first_name="Rahim", last_name="Uddin", email="rahim@example.com", role="user")
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def admin(session):
    user = User(first_name="Store", last_name="Admin", email="admin@example.com", role="admin")
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def customer_headers(customer):
    return {"Authorization": f"Bearer {issue_token(customer.id)}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {issue_token(admin.id)}"}


@pytest.fixture
def make_product(session):
    def _make(name="Notebook", price=500.0, stock=10, pos_stock=10, options=None):
        """``options`` maps a variation name to {value: price_modifier}."""
        product = Product(name=name, price=price, stock=stock, pos_stock=pos_stock)
        session.add(product)
        session.commit()

        for variation_name, values in (options or {}).items():
            variation = ProductVariation(product_id=product.id, name=variation_name)
            session.add(variation)
            session.commit()
            for value, modifier in values.items():
                session.add(
                    VariationOption(variation_id=variation.id, value=value, price_modifier=modifier)
                )
            session.commit()

        return product

    return _make


@pytest.fixture
def make_coupon(session):
    def _make(code="SAVE10", type="percentage", value=10, **fields):
        fields.setdefault("valid_from", NOW - timedelta(days=1))
        fields.setdefault("valid_until", NOW + timedelta(days=1))
        coupon = Coupon(code=code, type=type, value=value, **fields)
        session.add(coupon)
        session.commit()
        return coupon

    return _make


@pytest.fixture
def make_tax_rate(session):
    def _make(country, region="", city="", rate=0.0, is_default=False):
        tax_rate = TaxRate(country=country, region=region, city=city, rate=rate, is_default=is_default)
        session.add(tax_rate)
        session.commit()
        return tax_rate

    return _make


@pytest.fixture
def add_to_cart(session):
    def _add(user, product, quantity=1, variations=None):
        item = CartItem(
            user_id=user.id,
            product_id=product.id,
            quantity=quantity,
            variations=variations,
        )
        session.add(item)
        session.commit()
        return item

    return _add

