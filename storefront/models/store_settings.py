from sqlmodel import SQLModel, Field
from typing import Optional
from sqlalchemy import DateTime
from datetime import datetime

from storefront.utils.clock import utcnow


class StoreSettings(SQLModel, table=True):
    __tablename__ = "store_settings"

    id: Optional[int] = Field(default=1, primary_key=True)
    shipping_cost: float = 0

    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
