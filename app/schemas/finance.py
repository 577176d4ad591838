import datetime as dt
from typing import Literal, Optional

from uuid import UUID

from pydantic import BaseModel, Field


class TransactionCreate(BaseModel):
    type: Literal["income", "expense"]
    description: str = Field(min_length=1)
    amount: float = Field(ge=0)
    category: str = Field(min_length=1)
    date: Optional[dt.date] = None
    created_by: Optional[str] = None


class TransactionUpdate(BaseModel):
    type: Optional[Literal["income", "expense"]] = None
    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1)
    date: Optional[dt.date] = None


class TransactionOut(BaseModel):
    id: UUID
    type: str
    description: str
    amount: float
    category: str
    date: dt.date

    created_by: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
