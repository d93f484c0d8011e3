# storefront/schemas/checkout_schemas.py
from pydantic import BaseModel
from typing import Optional


class ShippingAddress(BaseModel):
    address: str
    city: str
    region: Optional[str] = None   # state / province, used for tax lookup
    postal_code: str
    country: str


class CheckoutRequest(ShippingAddress):
    coupon_code: Optional[str] = None
