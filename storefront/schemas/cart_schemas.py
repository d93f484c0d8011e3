from typing import Dict, Optional
from pydantic import BaseModel, Field


class CartAddRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    variations: Optional[Dict[str, str]] = None


class CartUpdateRequest(BaseModel):
    quantity: int
