import uuid
from sqlalchemy import Column, String, Numeric, Date, TIMESTAMP, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.db import Base


class FinancialTransaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("type IN ('income', 'expense')", name="ck_transactions_type"),
        CheckConstraint("amount >= 0", name="ck_transactions_amount_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    type = Column(String(10), nullable=False)  # income / expense
    description = Column(String(500), nullable=False)
    amount = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    category = Column(String(100), nullable=False)

    date = Column(Date, nullable=False, index=True)

    created_by = Column(String(100))
    created_at = Column(TIMESTAMP, server_default=func.now())
