"""Tests for coupon rules, discounts and redemption."""

from datetime import timedelta

import pytest

from storefront.errors import CouponRejectedError, NotFoundError, ValidationError
from storefront.services.coupon_service import (
    CouponRejection,
    apply_coupon,
    calculate_discount,
    evaluate_coupon,
    redeem_coupon,
    validate_coupon,
)


class TestEvaluateCoupon:
    def test_single_instant_window_is_valid(self, make_coupon, now):
        coupon = make_coupon(valid_from=now, valid_until=now)

        assert evaluate_coupon(coupon, 100, now) is None
        assert evaluate_coupon(coupon, 100, now + timedelta(seconds=1)) == CouponRejection.not_in_window
        assert evaluate_coupon(coupon, 100, now - timedelta(seconds=1)) == CouponRejection.not_in_window

    def test_missing_coupon(self, now):
        assert evaluate_coupon(None, 100, now) == CouponRejection.not_found

    def test_inactive(self, make_coupon, now):
        coupon = make_coupon(is_active=False)
        assert evaluate_coupon(coupon, 100, now) == CouponRejection.inactive

    def test_usage_limit_reached(self, make_coupon, now):
        coupon = make_coupon(usage_limit=3, used_count=3)
        assert evaluate_coupon(coupon, 100, now) == CouponRejection.usage_limit_reached

    def test_zero_limit_is_unlimited(self, make_coupon, now):
        coupon = make_coupon(usage_limit=0, used_count=500)
        assert evaluate_coupon(coupon, 100, now) is None

    def test_below_min_purchase(self, make_coupon, now):
        coupon = make_coupon(min_purchase=200)

        assert evaluate_coupon(coupon, 199.99, now) == CouponRejection.below_min_purchase
        assert evaluate_coupon(coupon, 200, now) is None

    def test_min_purchase_skipped_without_subtotal(self, make_coupon, now):
        coupon = make_coupon(min_purchase=200)
        assert evaluate_coupon(coupon, None, now) is None

    def test_rules_checked_in_order(self, make_coupon, now):
        coupon = make_coupon(
            is_active=False,
            usage_limit=1,
            used_count=1,
            valid_until=now - timedelta(days=1),
            valid_from=now - timedelta(days=2),
        )
        assert evaluate_coupon(coupon, 0, now) == CouponRejection.inactive


class TestCalculateDiscount:
    def test_percentage_capped(self, make_coupon):
        coupon = make_coupon(type="percentage", value=10, max_discount=80)
        assert calculate_discount(coupon, 1000) == 80

    def test_percentage_under_cap(self, make_coupon):
        coupon = make_coupon(type="percentage", value=10, max_discount=150)
        assert calculate_discount(coupon, 1000) == pytest.approx(100)

    def test_percentage_uncapped(self, make_coupon):
        coupon = make_coupon(type="percentage", value=25, max_discount=0)
        assert calculate_discount(coupon, 1000) == pytest.approx(250)

    def test_fixed_ignores_cap_and_subtotal(self, make_coupon):
        coupon = make_coupon(type="fixed", value=300, max_discount=50)
        assert calculate_discount(coupon, 100) == 300


class TestRedemption:
    def test_redeem_counts_one_use(self, session, make_coupon):
        coupon = make_coupon(usage_limit=2)

        assert redeem_coupon(session, coupon) is True
        session.commit()
        assert coupon.used_count == 1

    def test_redeem_refuses_past_the_cap(self, session, make_coupon):
        coupon = make_coupon(usage_limit=1, used_count=1)

        assert redeem_coupon(session, coupon) is False
        session.commit()
        session.refresh(coupon)
        assert coupon.used_count == 1

    def test_apply_skips_unknown_code(self, session, now):
        assert apply_coupon(session, "NOPE", 100, now) == (0.0, None)

    def test_apply_skips_expired_code(self, session, make_coupon, now):
        coupon = make_coupon(valid_from=now - timedelta(days=10), valid_until=now - timedelta(days=1))

        assert apply_coupon(session, coupon.code, 100, now) == (0.0, None)
        session.refresh(coupon)
        assert coupon.used_count == 0

    def test_apply_without_code(self, session, now):
        assert apply_coupon(session, None, 100, now) == (0.0, None)
        assert apply_coupon(session, "", 100, now) == (0.0, None)

    def test_apply_redeems(self, session, make_coupon, now):
        make_coupon(code="CAP80", value=10, max_discount=80, usage_limit=5)

        discount, coupon = apply_coupon(session, "CAP80", 1000, now)
        session.commit()

        assert discount == 80
        assert coupon.used_count == 1


class TestValidateCoupon:
    def test_valid_with_discount(self, session, make_coupon, now):
        make_coupon(code="CAP80", value=10, max_discount=80)

        coupon, discount = validate_coupon(session, "CAP80", 1000, now)
        assert coupon.code == "CAP80"
        assert discount == 80

    def test_valid_without_subtotal(self, session, make_coupon, now):
        make_coupon(code="CAP80")

        _, discount = validate_coupon(session, "CAP80", None, now)
        assert discount is None

    def test_blank_code(self, session):
        with pytest.raises(ValidationError):
            validate_coupon(session, "")

    def test_unknown_code(self, session, now):
        with pytest.raises(NotFoundError):
            validate_coupon(session, "NOPE", 100, now)

    @pytest.mark.parametrize(
        "fields, reason",
        [
            ({"is_active": False}, "inactive"),
            ({"usage_limit": 1, "used_count": 1}, "usage_limit_reached"),
            ({"min_purchase": 5000}, "below_min_purchase"),
        ],
    )
    def test_rejection_reasons(self, session, make_coupon, now, fields, reason):
        make_coupon(code="X1", **fields)

        with pytest.raises(CouponRejectedError) as exc:
            validate_coupon(session, "X1", 100, now)
        assert exc.value.reason == reason

    def test_out_of_window(self, session, make_coupon, now):
        make_coupon(code="LATE", valid_from=now + timedelta(days=1), valid_until=now + timedelta(days=2))

        with pytest.raises(CouponRejectedError) as exc:
            validate_coupon(session, "LATE", 100, now)
        assert exc.value.reason == "not_in_window"
