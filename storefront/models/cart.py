from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON
from typing import Dict, Optional
from datetime import datetime

from storefront.utils.clock import utcnow


class CartItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    product_id: int = Field(foreign_key="product.id")
    quantity: int = 1
    # {"Color": "Red", "Size": "L"}
    variations: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
