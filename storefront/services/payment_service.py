from typing import Iterable

from pydantic import BaseModel

from storefront.errors import OverpaymentError, ValidationError
from storefront.models.order import OrderStatus


class PaymentSummary(BaseModel):
    total_paid: float
    remaining_balance: float
    is_fully_paid: bool


def summarize_payments(total: float, amounts: Iterable[float]) -> PaymentSummary:
    """Read-side reconciliation of tendered amounts against an order total."""
    total_paid = round(sum(amounts), 2)
    remaining = round(total - total_paid, 2)
    return PaymentSummary(
        total_paid=total_paid,
        remaining_balance=remaining,
        is_fully_paid=remaining <= 0,
    )


def validate_payment_amounts(amounts: Iterable[float]):
    for amount in amounts:
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than 0")


def derive_pos_status(total: float, total_paid: float) -> OrderStatus:
    total_paid = round(total_paid, 2)
    if total_paid > total:
        raise OverpaymentError(total, total_paid)

    if total_paid >= total:
        return OrderStatus.completed
    if total_paid > 0:
        return OrderStatus.partial
    return OrderStatus.pending
