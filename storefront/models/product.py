from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from sqlalchemy import DateTime
from datetime import datetime

from storefront.utils.clock import utcnow


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    sku: Optional[str] = Field(default=None, unique=True)
    description: Optional[str] = None

    price: float

    # two independent pools, an order line draws from exactly one
    stock: int = Field(default=0)       # website
    pos_stock: int = Field(default=0)   # showroom

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    variations: List["ProductVariation"] = Relationship(back_populates="product")


class ProductVariation(SQLModel, table=True):
    __tablename__ = "product_variation"

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    name: str  # e.g. Color, Size
    is_required: bool = Field(default=True)

    product: Optional[Product] = Relationship(back_populates="variations")
    options: List["VariationOption"] = Relationship(back_populates="variation")


class VariationOption(SQLModel, table=True):
    __tablename__ = "variation_option"

    id: Optional[int] = Field(default=None, primary_key=True)
    variation_id: int = Field(foreign_key="product_variation.id", index=True)
    value: str  # e.g. Red, Large
    price_modifier: float = Field(default=0)

    variation: Optional[ProductVariation] = Relationship(back_populates="options")
