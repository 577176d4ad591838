import uuid
from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from app.db import Base


class LoyaltyAccountClosure(Base):
    __tablename__ = "loyalty_account_closures"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    phone_number = Column(String(20), nullable=False, index=True)
    customer_name = Column(String(200))

    reason = Column(String(20), nullable=False)  # REDEEMED / RESET
    points_at_close = Column(Integer, nullable=False)

    cycle_started_at = Column(TIMESTAMP, nullable=False)
    closed_at = Column(TIMESTAMP, nullable=False)
    closed_by = Column(String(100))
