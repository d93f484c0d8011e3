"""Tests for POS payment reconciliation."""

import pytest

from storefront.errors import OverpaymentError, ValidationError
from storefront.models.order import OrderStatus
from storefront.services.payment_service import (
    derive_pos_status,
    summarize_payments,
    validate_payment_amounts,
)


class TestDerivePosStatus:
    def test_overpayment_rejected(self):
        with pytest.raises(OverpaymentError) as exc:
            derive_pos_status(500, 600)

        assert exc.value.total == 500
        assert exc.value.total_paid == 600

    def test_partial(self):
        assert derive_pos_status(500, 200) == OrderStatus.partial

    def test_exact_payment_completes(self):
        assert derive_pos_status(500, 500) == OrderStatus.completed

    def test_no_payment_is_pending(self):
        assert derive_pos_status(500, 0) == OrderStatus.pending

    def test_zero_total_completes(self):
        assert derive_pos_status(0, 0) == OrderStatus.completed

    def test_float_noise_is_not_overpayment(self):
        # 0.1 + 0.2 == 0.30000000000000004
        assert derive_pos_status(0.3, 0.1 + 0.2) == OrderStatus.completed


class TestSummarizePayments:
    def test_partial_summary(self):
        summary = summarize_payments(500, [200])

        assert summary.total_paid == 200
        assert summary.remaining_balance == 300
        assert summary.is_fully_paid is False

    def test_split_tender_fully_paid(self):
        summary = summarize_payments(500, [150.5, 349.5])

        assert summary.total_paid == 500
        assert summary.remaining_balance == 0
        assert summary.is_fully_paid is True

    def test_no_payments(self):
        summary = summarize_payments(120, [])
        assert summary.remaining_balance == 120
        assert summary.is_fully_paid is False


class TestValidatePaymentAmounts:
    @pytest.mark.parametrize("amounts", [[0], [100, -5]])
    def test_non_positive_rejected(self, amounts):
        with pytest.raises(ValidationError):
            validate_payment_amounts(amounts)

    def test_positive_accepted(self):
        validate_payment_amounts([0.01, 100])
