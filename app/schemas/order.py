from datetime import datetime
from typing import Literal, Optional

from uuid import UUID

from pydantic import BaseModel


class CheckoutCreate(BaseModel):
    customer_name: str
    customer_phone: str

    delivery_option: Literal["pickup", "delivery"] = "pickup"
    delivery_address: Optional[str] = None
    delivery_cep: Optional[str] = None
    delivery_neighborhood: Optional[str] = None

    order_notes: Optional[str] = None


class CheckoutOut(BaseModel):
    order_id: UUID
    status: str
    subtotal: float
    delivery_fee: float
    total: float
    whatsapp_message: str
    whatsapp_url: str


class OrderItemOut(BaseModel):
    id: UUID
    product_id: Optional[UUID] = None
    product_name: str
    quantity: Optional[int] = None
    unit_price: float
    total_price: float

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: UUID
    customer_name: str
    customer_phone: str

    delivery_option: str
    delivery_address: Optional[str] = None
    delivery_cep: Optional[str] = None
    delivery_neighborhood: Optional[str] = None

    subtotal: float
    delivery_fee: float
    total: float
    order_notes: Optional[str] = None

    status: str
    whatsapp_sent: bool
    loyalty_recorded: bool
    loyalty_error: Optional[str] = None

    items: list[OrderItemOut] = []

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
