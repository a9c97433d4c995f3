from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from bakery.app.db.models.core_types import ProductType


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: ProductType
    price: Decimal = Field(gt=0)
    stock_quantity: int = Field(default=0, ge=0)
    showcase_quantity: int = Field(default=0, ge=0)


class ProductPatch(BaseModel):
    """Même convention que MaterialPatch : absent = inchangé, présent = écrasé."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    type: ProductType | None = None
    price: Decimal | None = Field(default=None, gt=0)
    stock_quantity: int | None = Field(default=None, ge=0)
    showcase_quantity: int | None = Field(default=None, ge=0)

    @field_validator("name", "type", "price", "stock_quantity", "showcase_quantity")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class ProductRead(BaseModel):
    id: int
    name: str
    type: ProductType
    price: Decimal
    stock_quantity: int
    showcase_quantity: int

    class Config:
        from_attributes = True


class SaleCreate(BaseModel):
    quantity: int = Field(gt=0)


class SaleRead(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity_sold: int
    total_amount: Decimal
    sold_at: datetime

    class Config:
        from_attributes = True


class DailySalesRead(BaseModel):
    product_id: int
    product_name: str
    product_type: ProductType
    day: date
    total_quantity: int
    total_amount: Decimal

    class Config:
        from_attributes = True
