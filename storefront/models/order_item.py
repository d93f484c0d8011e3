from sqlmodel import SQLModel, Field , Relationship
from sqlalchemy import Column, JSON
from typing import Dict, Optional , TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.models.order import Order

class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    product_id: int = Field(foreign_key="product.id")

    product_name: str
    price: float  # unit price frozen at order time
    quantity: int
    variations: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON))

    order: Optional["Order"] = Relationship(back_populates="items")
