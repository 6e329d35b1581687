# app/ProductPakage/schema/product.py
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Literal, Optional
from datetime import datetime
from decimal import Decimal


class ProductBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    condition: Optional[Literal["new", "used"]] = None
    link: Optional[str] = None
    price_usd: Optional[Decimal] = None
    price_ars: Optional[Decimal] = None
    price_clp: Optional[Decimal] = None
    price_wholesale: Optional[Decimal] = None
    price_retail: Optional[Decimal] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        if v is None:
            raise ValueError("Product name is required")
        if not isinstance(v, str):
            raise ValueError("Product name must be a string")
        v = v.strip()
        if not v:
            raise ValueError("Product name is required")
        return v


class ProductCreate(ProductBase):
    pass


class ProductUpdate(ProductBase):
    pass


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    condition: Optional[str] = None
    link: Optional[str] = None
    price_usd: Optional[float] = None
    price_ars: Optional[float] = None
    price_clp: Optional[float] = None
    price_wholesale: Optional[float] = None
    price_retail: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class ProductDeleted(BaseModel):
    message: str
    id: int
