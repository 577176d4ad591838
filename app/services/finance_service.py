"""
Income and expense bookkeeping for the back-office.

Amounts are always stored positive; `type` says which side of the balance a
transaction is on.
"""
import logging
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.financial_transaction import FinancialTransaction
from app.schemas.finance import TransactionCreate


logger = logging.getLogger(__name__)

TYPE_INCOME = "income"
TYPE_EXPENSE = "expense"
TRANSACTION_TYPES = {TYPE_INCOME, TYPE_EXPENSE}


@dataclass
class FinanceTotals:
    income: float
    expense: float

    @property
    def balance(self) -> float:
        return round(self.income - self.expense, 2)

    @property
    def margin_percent(self) -> float:
        # net margin over income; 0 when there is no income to divide by
        if self.income <= 0:
            return 0.0
        return round(self.balance / self.income * 100, 2)


def _filtered(q, *, type: str | None, start: date | None, end: date | None):
    if type:
        if type not in TRANSACTION_TYPES:
            raise HTTPException(status_code=400, detail=f"Unknown transaction type: {type}")
        q = q.filter(FinancialTransaction.type == type)
    if start:
        q = q.filter(FinancialTransaction.date >= start)
    if end:
        q = q.filter(FinancialTransaction.date <= end)
    return q


def list_transactions(
    db: Session,
    *,
    type: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[FinancialTransaction]:
    q = _filtered(db.query(FinancialTransaction), type=type, start=start, end=end)
    return q.order_by(FinancialTransaction.date.desc(), FinancialTransaction.created_at.desc()).all()


def get_transaction(db: Session, transaction_id: UUID) -> FinancialTransaction:
    tx = db.query(FinancialTransaction).filter(FinancialTransaction.id == transaction_id).first()
    if not tx:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return tx


def create_transaction(db: Session, payload: TransactionCreate, *, today: date | None = None) -> FinancialTransaction:
    tx = FinancialTransaction(
        type=payload.type,
        description=payload.description.strip(),
        amount=round(payload.amount, 2),
        category=payload.category.strip(),
        date=payload.date or today or date.today(),
        created_by=payload.created_by,
    )
    db.add(tx)
    db.flush()
    logger.info(
        "financial transaction recorded",
        extra={"transaction_id": str(tx.id), "type": tx.type, "amount": tx.amount},
    )
    return tx


def compute_totals(
    db: Session,
    *,
    type: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> FinanceTotals:
    q = db.query(
        FinancialTransaction.type,
        func.coalesce(func.sum(FinancialTransaction.amount), 0),
    )
    rows = _filtered(q, type=type, start=start, end=end).group_by(FinancialTransaction.type).all()
    sums = {t: round(float(total or 0), 2) for t, total in rows}
    return FinanceTotals(income=sums.get(TYPE_INCOME, 0.0), expense=sums.get(TYPE_EXPENSE, 0.0))


def totals_of(transactions: list[FinancialTransaction]) -> FinanceTotals:
    income = sum(float(t.amount) for t in transactions if t.type == TYPE_INCOME)
    expense = sum(float(t.amount) for t in transactions if t.type == TYPE_EXPENSE)
    return FinanceTotals(income=round(income, 2), expense=round(expense, 2))


def amounts_by_category(transactions: list[FinancialTransaction], type: str) -> list[tuple[str, float]]:
    """Per-category sums for one side, largest first."""
    sums: dict[str, float] = {}
    for t in transactions:
        if t.type == type:
            sums[t.category] = sums.get(t.category, 0.0) + float(t.amount)
    return sorted(((c, round(v, 2)) for c, v in sums.items()), key=lambda item: (-item[1], item[0]))
