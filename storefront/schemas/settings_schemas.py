from pydantic import BaseModel, Field


class StoreSettingsUpdate(BaseModel):
    shipping_cost: float = Field(ge=0)
