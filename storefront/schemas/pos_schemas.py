# storefront/schemas/pos_schemas.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class PosOrderItem(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    variations: Optional[Dict[str, str]] = None


class PosPayment(BaseModel):
    method: str              # cash | card | mobile
    amount: float = Field(gt=0)
    reference: Optional[str] = None


class PosOrderRequest(BaseModel):
    customer_id: Optional[int] = None   # None -> walk-in customer
    items: List[PosOrderItem]
    payments: List[PosPayment] = []
    address: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    coupon_code: Optional[str] = None
    notes: Optional[str] = None
    stock_type: Optional[str] = None    # website | showroom, defaults to website
