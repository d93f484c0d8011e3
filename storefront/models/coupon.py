from sqlmodel import SQLModel, Field
from typing import Optional
from sqlalchemy import DateTime
from datetime import datetime
from enum import Enum

from storefront.utils.clock import utcnow


class CouponType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"


class Coupon(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, unique=True)
    type: str = Field(default=CouponType.percentage.value)
    value: float

    min_purchase: float = 0
    max_discount: float = 0   # 0 = uncapped
    usage_limit: int = 0      # 0 = unlimited
    used_count: int = 0

    # both ends inclusive
    valid_from: datetime = Field(sa_type=DateTime)
    valid_until: datetime = Field(sa_type=DateTime)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
