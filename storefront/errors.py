"""Failures raised by the order engine.

Services raise these; ``storefront.main`` renders them as JSON responses.
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 400
    code = "storefront_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "error": self.code}


class ValidationError(StorefrontError):
    """Malformed or missing input (empty cart, bad quantity, blank address)."""

    code = "validation_error"


class NotFoundError(StorefrontError):
    """A referenced product, coupon, customer or order does not exist."""

    status_code = 404
    code = "not_found"

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class InsufficientStockError(StorefrontError):
    """A line asks for more units than its stock pool holds."""

    code = "insufficient_stock"

    def __init__(
        self,
        product_id: int,
        product_name: str,
        pool: str,
        available: int,
        requested: int,
    ):
        self.product_id = product_id
        self.product_name = product_name
        self.pool = pool
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient {pool} stock for product: {product_name} "
            f"(Available: {available}, Requested: {requested})"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            product_id=self.product_id,
            pool=self.pool,
            available=self.available,
            requested=self.requested,
        )
        return data


class OverpaymentError(StorefrontError):
    """POS payments add up to more than the order total."""

    code = "overpayment"

    def __init__(self, total: float, total_paid: float):
        self.total = total
        self.total_paid = total_paid
        super().__init__(
            f"Total payments exceed order total ({total_paid:.2f} > {total:.2f})"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(total=self.total, total_paid=self.total_paid)
        return data


class CouponRejectedError(StorefrontError):
    """Raised by standalone coupon validation with the rejection reason."""

    code = "coupon_rejected"

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or f"Coupon rejected: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        return data


class InvalidTransitionError(StorefrontError):
    code = "invalid_transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from {current} to {requested}")


class PersistenceError(StorefrontError):
    """The store failed mid-transaction; everything was rolled back."""

    status_code = 500
    code = "persistence_error"
