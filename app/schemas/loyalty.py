from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class LoyaltyAccountOut(BaseModel):
    phone_number: str
    customer_name: Optional[str] = None

    points_accumulated: int
    reward_threshold: int
    points_missing: int

    has_reward: bool
    is_expired: bool
    days_remaining: int

    cycle_started_at: datetime
    cycle_limit_date: datetime
    last_purchase_at: datetime


class LoyaltyCloseRequest(BaseModel):
    confirm: bool = False
    closed_by: Optional[str] = None


class LoyaltyClosureOut(BaseModel):
    id: UUID
    phone_number: str
    customer_name: Optional[str] = None

    reason: str
    points_at_close: int

    cycle_started_at: datetime
    closed_at: datetime
    closed_by: Optional[str] = None

    class Config:
        from_attributes = True
