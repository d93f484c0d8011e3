import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from storefront.constants.order_status import (
    ALLOWED_TRANSITIONS,
    NOT_APPLICABLE,
    WALK_IN_ADDRESS,
)
from storefront.errors import (
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    StorefrontError,
    ValidationError,
)
from storefront.models.cart import CartItem
from storefront.models.coupon import Coupon
from storefront.models.order import Order, OrderStatus
from storefront.models.order_item import OrderItem
from storefront.models.payment import Payment
from storefront.models.product import Product, ProductVariation, VariationOption
from storefront.models.store_settings import StoreSettings
from storefront.models.user import User
from storefront.schemas.checkout_schemas import ShippingAddress
from storefront.schemas.pos_schemas import PosOrderRequest
from storefront.services.coupon_service import apply_coupon
from storefront.services.inventory_service import (
    StockPool,
    check_stock,
    normalize_pool,
    reserve_stock,
)
from storefront.services.payment_service import (
    PaymentSummary,
    derive_pos_status,
    summarize_payments,
    validate_payment_amounts,
)
from storefront.services.tax_service import resolve_tax_rate
from storefront.utils.clock import utcnow
from storefront.utils.cache_helpers import (
    ResponseCache,
    cart_key,
    coupon_key,
    orders_key,
    product_key,
)

logger = logging.getLogger(__name__)


@dataclass
class PricedLine:
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    variations: Optional[Dict[str, str]]

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


def variation_price_modifier(
    session: Session,
    product_id: int,
    selections: Optional[Dict[str, str]],
) -> float:
    """Sum of price modifiers for the selected options.

    Selections that match no option (custom values) add nothing.
    """
    if not selections:
        return 0.0

    rows = session.exec(
        select(ProductVariation.name, VariationOption.value, VariationOption.price_modifier)
        .join(VariationOption, VariationOption.variation_id == ProductVariation.id)
        .where(ProductVariation.product_id == product_id)
    ).all()
    modifiers = {(name, value): modifier for name, value, modifier in rows}

    return sum(modifiers.get((name, value), 0.0) for name, value in selections.items())


def order_total(subtotal: float, discount: float, tax: float = 0, shipping: float = 0) -> float:
    # a fixed coupon larger than the subtotal bottoms out at zero
    return max(0.0, round(subtotal - discount + tax + shipping, 2))


def load_order(session: Session, order_id: int) -> Optional[Order]:
    return session.exec(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items), selectinload(Order.payments))
        .execution_options(populate_existing=True)
    ).first()


def transition_status(session: Session, order_id: int, new_status: OrderStatus) -> Order:
    """Administrative status change; the caller commits."""
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order", order_id)

    if new_status.value not in ALLOWED_TRANSITIONS.get(order.status, []):
        raise InvalidTransitionError(order.status, new_status.value)

    order.status = new_status.value
    order.updated_at = utcnow()
    session.add(order)
    return order


class OrderAssembler:
    """Turns a cart or a POS item list into a persisted order.

    Every call runs in its own session and a single transaction: the order
    header, its lines, POS payments, the coupon redemption and the stock
    decrements commit together or not at all.
    """

    def __init__(
        self,
        engine: Engine,
        cache: Optional[ResponseCache] = None,
        default_shipping_cost: float = 0.0,
        walk_in_email: str = "walkin@pos.local",
        clock: Callable[[], datetime] = utcnow,
    ):
        self._engine = engine
        self._cache = cache
        self._default_shipping_cost = default_shipping_cost
        self._walk_in_email = walk_in_email
        self._clock = clock

    @property
    def default_shipping_cost(self) -> float:
        """Shipping charged while no store settings row exists."""
        return self._default_shipping_cost

    # ------------------------------------------------------------------
    # Checkout (cart)
    # ------------------------------------------------------------------
    def checkout(
        self,
        user_id: int,
        address: ShippingAddress,
        coupon_code: Optional[str] = None,
    ) -> Order:
        missing = [
            name for name in ("address", "city", "postal_code", "country")
            if not (getattr(address, name) or "").strip()
        ]
        if missing:
            raise ValidationError(f"Missing address fields: {', '.join(missing)}")

        with Session(self._engine, expire_on_commit=False) as session:
            try:
                with session.begin():
                    cart_items = session.exec(
                        select(CartItem)
                        .where(CartItem.user_id == user_id)
                        .order_by(CartItem.id)
                    ).all()

                    if not cart_items:
                        raise ValidationError("Cart is empty")

                    now = self._clock()
                    lines = [
                        self._price_line(session, c.product_id, c.quantity, c.variations, StockPool.website)
                        for c in cart_items
                    ]
                    subtotal = round(sum(line.line_total for line in lines), 2)

                    tax_rate = resolve_tax_rate(session, address.country, address.region, address.city)
                    tax = round(subtotal * (tax_rate / 100), 2)
                    shipping = self._shipping_cost(session)

                    discount, coupon = apply_coupon(session, coupon_code, subtotal, now)
                    discount = round(discount, 2)

                    order = Order(
                        user_id=user_id,
                        subtotal=subtotal,
                        tax=tax,
                        tax_rate=tax_rate,
                        discount=discount,
                        shipping=shipping,
                        total=order_total(subtotal, discount, tax, shipping),
                        status=OrderStatus.pending.value,
                        address=address.address,
                        city=address.city,
                        region=address.region,
                        postal_code=address.postal_code,
                        country=address.country,
                        is_pos=False,
                        coupon_id=coupon.id if coupon else None,
                        created_at=now,
                        updated_at=now,
                    )
                    self._persist(session, order, lines, [], StockPool.website)

                    for item in cart_items:
                        session.delete(item)

                order_id = order.id
            except StorefrontError as e:
                logger.info(f"Checkout rejected for user {user_id}: {e}")
                raise
            except SQLAlchemyError as e:
                logger.error(f"Checkout failed for user {user_id}, rolled back: {e}")
                raise PersistenceError("Failed to create order") from e

            order = load_order(session, order_id)

        logger.info(
            f"Order {order.id} created for user {user_id}: subtotal {order.subtotal}, "
            f"tax {order.tax}, discount {order.discount}, shipping {order.shipping}, total {order.total}"
        )
        self._invalidate(user_id, [line.product_id for line in lines], coupon)
        return order

    # ------------------------------------------------------------------
    # Point of sale
    # ------------------------------------------------------------------
    def create_pos_order(self, request: PosOrderRequest) -> Tuple[Order, PaymentSummary]:
        if not request.items:
            raise ValidationError("No items in order")

        amounts = [p.amount for p in request.payments]
        validate_payment_amounts(amounts)
        pool = normalize_pool(request.stock_type)

        logger.info(
            f"POS order received: {len(request.items)} items, {len(request.payments)} payments, "
            f"{pool.value} stock"
        )

        walk_in_id = self.walk_in_customer_id() if request.customer_id is None else None

        with Session(self._engine, expire_on_commit=False) as session:
            try:
                with session.begin():
                    if request.customer_id is not None:
                        customer = session.get(User, request.customer_id)
                        if not customer:
                            raise NotFoundError("Customer", request.customer_id)
                        user_id = customer.id
                    else:
                        user_id = walk_in_id

                    now = self._clock()
                    lines = [
                        self._price_line(session, item.product_id, item.quantity, item.variations, pool)
                        for item in request.items
                    ]
                    subtotal = round(sum(line.line_total for line in lines), 2)

                    discount, coupon = apply_coupon(session, request.coupon_code, subtotal, now)
                    discount = round(discount, 2)

                    # no tax or shipping on the POS path
                    total = order_total(subtotal, discount)
                    status = derive_pos_status(total, sum(amounts))

                    order = Order(
                        user_id=user_id,
                        subtotal=subtotal,
                        discount=discount,
                        total=total,
                        status=status.value,
                        address=request.address or WALK_IN_ADDRESS,
                        city=request.city or NOT_APPLICABLE,
                        region=request.region,
                        postal_code=request.postal_code or NOT_APPLICABLE,
                        country=request.country or NOT_APPLICABLE,
                        is_pos=True,
                        notes=request.notes,
                        coupon_id=coupon.id if coupon else None,
                        created_at=now,
                        updated_at=now,
                    )
                    payments = [
                        Payment(method=p.method, amount=p.amount, reference=p.reference, created_at=now)
                        for p in request.payments
                    ]
                    self._persist(session, order, lines, payments, pool)

                order_id = order.id
            except StorefrontError as e:
                logger.info(f"POS order rejected: {e}")
                raise
            except SQLAlchemyError as e:
                logger.error(f"POS order failed, rolled back: {e}")
                raise PersistenceError("Failed to create order") from e

            order = load_order(session, order_id)

        summary = summarize_payments(order.total, [p.amount for p in order.payments])
        logger.info(
            f"POS order {order.id} created: total {order.total}, paid {summary.total_paid}, "
            f"status {order.status}"
        )
        self._invalidate(order.user_id, [line.product_id for line in lines], coupon)
        return order, summary

    def walk_in_customer_id(self) -> int:
        """Find or create the synthetic customer used for anonymous sales."""
        with Session(self._engine) as session:
            user = session.exec(select(User).where(User.email == self._walk_in_email)).first()
            if user:
                return user.id

            user = User(
                first_name="Walk-in",
                last_name="Customer",
                email=self._walk_in_email,
                role="user",
                can_login=False,
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                # created by a concurrent sale
                session.rollback()
                user = session.exec(select(User).where(User.email == self._walk_in_email)).one()
                return user.id
            except SQLAlchemyError as e:
                raise PersistenceError("Failed to create walk-in customer") from e

            logger.info(f"Created walk-in customer {user.id}")
            return user.id

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _price_line(
        self,
        session: Session,
        product_id: int,
        quantity: int,
        variations: Optional[Dict[str, str]],
        pool: StockPool,
    ) -> PricedLine:
        if quantity is None or quantity <= 0:
            raise ValidationError(f"Quantity must be greater than 0 (product {product_id})")

        product = session.get(Product, product_id)
        if not product:
            raise NotFoundError("Product", product_id)

        check_stock(product, pool, quantity)

        unit_price = product.price + variation_price_modifier(session, product.id, variations)
        return PricedLine(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=round(unit_price, 2),
            variations=dict(variations) if variations else None,
        )

    def _shipping_cost(self, session: Session) -> float:
        store = session.get(StoreSettings, 1)
        if store is None:
            return self._default_shipping_cost
        return store.shipping_cost

    def _persist(
        self,
        session: Session,
        order: Order,
        lines: List[PricedLine],
        payments: List[Payment],
        pool: StockPool,
    ):
        session.add(order)
        session.flush()

        for line in lines:
            session.add(
                OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    price=line.unit_price,
                    quantity=line.quantity,
                    variations=line.variations,
                )
            )

        for payment in payments:
            payment.order_id = order.id
            session.add(payment)

        session.flush()

        for line in lines:
            reserve_stock(session, line.product_id, pool, line.quantity)

    def _invalidate(self, user_id: int, product_ids: Iterable[int], coupon: Optional[Coupon]):
        if self._cache is None:
            return

        keys = [product_key(pid) for pid in set(product_ids)]
        keys += [cart_key(user_id), orders_key(user_id), orders_key()]
        if coupon is not None:
            keys.append(coupon_key(coupon.code))

        try:
            self._cache.invalidate(*keys)
        except Exception as e:
            logger.warning(f"Cache invalidation failed: {e}")
