import uuid
from sqlalchemy import Column, String, Boolean, Numeric, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    session_id = Column(String(100))

    customer_name = Column(String(200), nullable=False)
    customer_phone = Column(String(30), nullable=False)

    delivery_option = Column(String(20), nullable=False, default="pickup")  # pickup / delivery
    delivery_address = Column(String(300))
    delivery_cep = Column(String(20))
    delivery_neighborhood = Column(String(100))

    subtotal = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    delivery_fee = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    total = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)

    order_notes = Column(String(1000))

    status = Column(String(20), nullable=False, default="pending")
    # pending | approved | rejected

    whatsapp_sent = Column(Boolean, nullable=False, default=False)

    # approval and loyalty accrual are committed separately
    loyalty_recorded = Column(Boolean, nullable=False, default=False)
    loyalty_error = Column(String)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.product_name",
    )
