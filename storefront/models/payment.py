from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from sqlalchemy import DateTime
from datetime import datetime

from storefront.utils.clock import utcnow

if TYPE_CHECKING:
    from storefront.models.order import Order


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    order_id: int = Field(foreign_key="order.id", index=True)

    method: str  # cash | card | mobile | ...
    amount: float
    reference: Optional[str] = None  # receipt number, terminal slip, etc.
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    order: Optional["Order"] = Relationship(back_populates="payments")
