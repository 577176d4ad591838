import datetime as dt
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class SaleCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(gt=0)
    # defaults to the product's current price
    unit_price: Optional[float] = Field(default=None, ge=0)
    date: Optional[dt.date] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None


class SaleUpdate(BaseModel):
    product_id: Optional[UUID] = None
    quantity: Optional[int] = Field(default=None, gt=0)
    unit_price: Optional[float] = Field(default=None, ge=0)
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class SaleOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: Optional[str] = None

    quantity: int
    unit_price: float
    total_amount: float

    date: dt.date
    notes: Optional[str] = None

    created_by: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class ProductSalesOut(BaseModel):
    product_id: UUID
    product_name: str
    total_quantity: int
    total_revenue: float
