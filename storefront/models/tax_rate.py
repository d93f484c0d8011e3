from sqlmodel import SQLModel, Field
from typing import Optional
from sqlalchemy import DateTime
from datetime import datetime

from storefront.utils.clock import utcnow


class TaxRate(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    country: str = Field(index=True)
    region: Optional[str] = Field(default="")  # state / province
    city: Optional[str] = Field(default="")
    rate: float  # percentage
    is_default: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
