from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class TaxRateCreate(BaseModel):
    country: str = Field(min_length=1)
    region: Optional[str] = ""
    city: Optional[str] = ""
    rate: float = Field(ge=0)
    is_default: bool = False


class TaxRateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    country: str
    region: Optional[str] = ""
    city: Optional[str] = ""
    rate: float
    is_default: bool = False
