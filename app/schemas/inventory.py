from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class InventoryUpdate(BaseModel):
    quantity_available: Optional[int] = Field(default=None, ge=0)
    reorder_level: Optional[int] = Field(default=None, ge=0)


class InventoryOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: Optional[str] = None

    quantity_available: int
    quantity_sold: int
    reorder_level: int
    needs_restock: bool

    last_restocked: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
