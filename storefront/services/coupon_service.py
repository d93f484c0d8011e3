import logging
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from sqlalchemy import or_, update
from sqlmodel import Session, select

from storefront.errors import CouponRejectedError, NotFoundError, ValidationError
from storefront.models.coupon import Coupon, CouponType
from storefront.utils.clock import utcnow

logger = logging.getLogger(__name__)


class CouponRejection(str, Enum):
    not_found = "not_found"
    inactive = "inactive"
    not_in_window = "not_in_window"
    usage_limit_reached = "usage_limit_reached"
    below_min_purchase = "below_min_purchase"


REJECTION_MESSAGES = {
    CouponRejection.not_found: "Invalid coupon code",
    CouponRejection.inactive: "Coupon is not active",
    CouponRejection.not_in_window: "Coupon is not valid at this time",
    CouponRejection.usage_limit_reached: "Coupon usage limit reached",
    CouponRejection.below_min_purchase: "Order does not meet the coupon's minimum purchase",
}


def evaluate_coupon(
    coupon: Optional[Coupon],
    subtotal: Optional[float],
    now: datetime,
) -> Optional[CouponRejection]:
    """Rule table shared by checkout and the validation endpoint.

    Returns None when the coupon applies, otherwise the first failing rule.
    ``subtotal=None`` skips the minimum purchase rule.
    """
    if coupon is None:
        return CouponRejection.not_found
    if not coupon.is_active:
        return CouponRejection.inactive
    if not (coupon.valid_from <= now <= coupon.valid_until):
        return CouponRejection.not_in_window
    if coupon.usage_limit > 0 and coupon.used_count >= coupon.usage_limit:
        return CouponRejection.usage_limit_reached
    if subtotal is not None and subtotal < coupon.min_purchase:
        return CouponRejection.below_min_purchase
    return None


def calculate_discount(coupon: Coupon, subtotal: float) -> float:
    if coupon.type == CouponType.percentage.value:
        discount = subtotal * (coupon.value / 100)
        if coupon.max_discount > 0 and discount > coupon.max_discount:
            discount = coupon.max_discount
        return discount

    # fixed amounts are neither capped nor bounded by the subtotal
    return coupon.value


def get_coupon_by_code(session: Session, code: str) -> Optional[Coupon]:
    return session.exec(select(Coupon).where(Coupon.code == code)).first()


def redeem_coupon(session: Session, coupon: Coupon) -> bool:
    """Count one use, re-checking the cap against the row being written.

    False means another order took the last use first.
    """
    result = session.exec(
        update(Coupon)
        .where(
            Coupon.id == coupon.id,
            Coupon.is_active == True,  # noqa: E712
            or_(Coupon.usage_limit == 0, Coupon.used_count < Coupon.usage_limit),
        )
        .values(used_count=Coupon.used_count + 1, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False

    session.refresh(coupon)
    return True


def apply_coupon(
    session: Session,
    code: Optional[str],
    subtotal: float,
    now: datetime,
) -> Tuple[float, Optional[Coupon]]:
    """Discount for an order being created; invalid codes are skipped."""
    if not code:
        return 0.0, None

    coupon = session.exec(
        select(Coupon).where(Coupon.code == code, Coupon.is_active == True)  # noqa: E712
    ).first()

    rejection = evaluate_coupon(coupon, subtotal, now)
    if rejection:
        logger.info(f"Coupon {code!r} skipped: {rejection.value}")
        return 0.0, None

    discount = calculate_discount(coupon, subtotal)

    if not redeem_coupon(session, coupon):
        logger.info(f"Coupon {code!r} skipped: usage limit reached at redemption")
        return 0.0, None

    logger.info(f"Coupon {code!r} redeemed ({coupon.used_count}/{coupon.usage_limit or 'unlimited'})")
    return discount, coupon


def validate_coupon(
    session: Session,
    code: Optional[str],
    subtotal: Optional[float] = None,
    now: Optional[datetime] = None,
) -> Tuple[Coupon, Optional[float]]:
    """Standalone validation: same rules, but every rejection is reported."""
    if not code:
        raise ValidationError("Coupon code is required")

    now = now or utcnow()
    coupon = get_coupon_by_code(session, code)
    if coupon is None:
        raise NotFoundError("Coupon", code)

    rejection = evaluate_coupon(coupon, subtotal, now)
    if rejection:
        raise CouponRejectedError(rejection.value, REJECTION_MESSAGES[rejection])

    discount = calculate_discount(coupon, subtotal) if subtotal is not None else None
    return coupon, discount
