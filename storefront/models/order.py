from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from sqlalchemy import DateTime
from datetime import datetime
from enum import Enum

from storefront.models.order_item import OrderItem
from storefront.models.payment import Payment
from storefront.utils.clock import utcnow


class OrderStatus(str, Enum):
    pending = "pending"
    partial = "partial"
    completed = "completed"
    processing = "processing"
    shipped = "shipped"
    cancelled = "cancelled"


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    subtotal: float = 0
    tax: float = 0
    discount: float = 0
    shipping: float = 0
    tax_rate: float = 0
    total: float

    status: str = Field(default=OrderStatus.pending.value, index=True)

    address: str
    city: str
    region: Optional[str] = None
    postal_code: str
    country: str

    is_pos: bool = Field(default=False, index=True)
    notes: Optional[str] = None
    coupon_id: Optional[int] = Field(default=None, foreign_key="coupon.id")

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    items: List["OrderItem"] = Relationship(back_populates="order")
    payments: List["Payment"] = Relationship(back_populates="order")
