import uuid
from sqlalchemy import Column, Integer, String, TIMESTAMP, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from app.db import Base


class LoyaltyAccount(Base):
    __tablename__ = "loyalty_accounts"

    __table_args__ = (
        CheckConstraint("points_accumulated >= 0", name="ck_loyalty_accounts_points_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # digits only, one live account per phone
    phone_number = Column(String(20), nullable=False, unique=True, index=True)
    customer_name = Column(String(200))

    points_accumulated = Column(Integer, nullable=False, default=0)

    # start of the 30-day cycle, never mutated while the row lives
    cycle_started_at = Column(TIMESTAMP, nullable=False)
    last_purchase_at = Column(TIMESTAMP, nullable=False)
