from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.product import ProductOut


class CartItemAdd(BaseModel):
    product_id: UUID
    quantity: int = Field(default=1, ge=1)


class CartItemUpdate(BaseModel):
    # <= 0 removes the line
    quantity: int


class CartItemOut(BaseModel):
    id: UUID
    product_id: UUID
    quantity: int
    line_total: float
    product: ProductOut

    created_at: Optional[datetime] = None


class CartOut(BaseModel):
    session_id: str
    items: list[CartItemOut]
    item_count: int
    subtotal: float


class CartSessionOut(BaseModel):
    session_id: str
