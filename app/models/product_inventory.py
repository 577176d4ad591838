import uuid
from sqlalchemy import Column, Integer, TIMESTAMP, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db import Base


class ProductInventory(Base):
    __tablename__ = "product_inventory"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False, unique=True)

    quantity_available = Column(Integer, nullable=False, default=0)
    quantity_sold = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=0)

    last_restocked = Column(TIMESTAMP)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    product = relationship("Product", lazy="joined")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def needs_restock(self) -> bool:
        return self.quantity_available <= self.reorder_level
