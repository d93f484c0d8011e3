import logging
from enum import Enum
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session

from storefront.errors import InsufficientStockError, NotFoundError
from storefront.models.product import Product

logger = logging.getLogger(__name__)


class StockPool(str, Enum):
    website = "website"    # online storefront
    showroom = "showroom"  # point of sale


def normalize_pool(value: Optional[str]) -> StockPool:
    if not value:
        return StockPool.website
    try:
        return StockPool(value)
    except ValueError:
        logger.warning(f"Unknown stock type {value!r}, using website stock")
        return StockPool.website


def _pool_column(pool: StockPool):
    return Product.pos_stock if pool == StockPool.showroom else Product.stock


def available_stock(product: Product, pool: StockPool) -> int:
    return product.pos_stock if pool == StockPool.showroom else product.stock


def check_stock(product: Product, pool: StockPool, quantity: int):
    """Snapshot check made while pricing; reserve_stock re-checks on write."""
    available = available_stock(product, pool)
    if available < quantity:
        raise InsufficientStockError(product.id, product.name, pool.value, available, quantity)


def reserve_stock(session: Session, product_id: int, pool: StockPool, quantity: int):
    column = _pool_column(pool)

    result = session.exec(
        update(Product)
        .where(Product.id == product_id, column >= quantity)
        .values({column: column - quantity})
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 1:
        return

    product = session.get(Product, product_id, populate_existing=True)
    if not product:
        raise NotFoundError("Product", product_id)

    available = available_stock(product, pool)
    logger.warning(
        f"Stock reservation failed for product {product_id} ({pool.value}): "
        f"available {available}, requested {quantity}"
    )
    raise InsufficientStockError(product_id, product.name, pool.value, available, quantity)
