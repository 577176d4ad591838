import uuid
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.db import Base


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer)
    unit_price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    total_price = Column(Numeric(10, 2, asdecimal=False), nullable=False)

    order = relationship("Order", back_populates="items")
