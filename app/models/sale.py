import uuid
from sqlalchemy import Column, Integer, String, Numeric, Date, TIMESTAMP, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db import Base


class Sale(Base):
    __tablename__ = "sales"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    total_amount = Column(Numeric(10, 2, asdecimal=False), nullable=False)

    date = Column(Date, nullable=False, index=True)
    notes = Column(String(1000))

    created_by = Column(String(100))
    created_at = Column(TIMESTAMP, server_default=func.now())

    product = relationship("Product", lazy="joined")

    @property
    def product_name(self):
        return self.product.name if self.product else None
