from datetime import datetime, timezone
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from typing import Annotated, Optional

from storefront.models.coupon import CouponType


def _to_naive_utc(value):
    # stored and compared as naive UTC
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_to_naive_utc)]


class CouponCreate(BaseModel):
    code: str = Field(min_length=1)
    type: CouponType
    value: float = Field(gt=0)
    min_purchase: float = 0
    max_discount: float = 0
    usage_limit: int = Field(default=0, ge=0)
    valid_from: UtcDatetime   # "YYYY-MM-DD" is read as midnight
    valid_until: UtcDatetime
    is_active: bool = True


class CouponUpdate(BaseModel):
    code: Optional[str] = None
    type: Optional[CouponType] = None
    value: Optional[float] = Field(default=None, gt=0)
    min_purchase: Optional[float] = None
    max_discount: Optional[float] = None
    usage_limit: Optional[int] = Field(default=None, ge=0)
    valid_from: Optional[UtcDatetime] = None
    valid_until: Optional[UtcDatetime] = None
    is_active: Optional[bool] = None


class CouponRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    type: str
    value: float
    min_purchase: float
    max_discount: float
    usage_limit: int
    used_count: int
    valid_from: datetime
    valid_until: datetime
    is_active: bool


class CouponValidationResponse(BaseModel):
    valid: bool
    coupon: CouponRead
    discount: Optional[float] = None
