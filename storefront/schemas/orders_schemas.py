from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Optional

from storefront.models.order import OrderStatus


class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: str
    price: float
    quantity: int
    variations: Optional[Dict[str, str]] = None


class PaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    method: str
    amount: float
    reference: Optional[str] = None
    created_at: datetime


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    subtotal: float
    tax: float
    tax_rate: float
    discount: float
    shipping: float
    total: float
    status: str
    address: str
    city: str
    region: Optional[str] = None
    postal_code: str
    country: str
    is_pos: bool
    notes: Optional[str] = None
    coupon_id: Optional[int] = None
    created_at: datetime
    items: List[OrderItemRead] = []
    payments: List[PaymentRead] = []


class PosOrderResponse(BaseModel):
    order: OrderRead
    total_paid: float
    remaining_balance: float
    is_fully_paid: bool


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
