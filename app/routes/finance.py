from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app import settings
from app.db import get_db
from app.deps.admin import require_admin
from app.schemas.finance import TransactionCreate, TransactionOut, TransactionUpdate
from app.services.finance_service import (
    compute_totals,
    create_transaction,
    get_transaction,
    list_transactions,
)
from app.services.report_service import finance_csv


router = APIRouter(prefix="/finance", tags=["finance"], dependencies=[Depends(require_admin)])


@router.get("/transactions", response_model=list[TransactionOut])
def read_transactions(
    type: str | None = None,
    start: date | None = None,
    end: date | None = None,
    db: Session = Depends(get_db),
):
    return list_transactions(db, type=type, start=start, end=end)


@router.post("/transactions", response_model=TransactionOut)
def record_transaction(payload: TransactionCreate, db: Session = Depends(get_db)):
    tx = create_transaction(db, payload)
    db.commit()
    db.refresh(tx)
    return tx


@router.get("/transactions/{transaction_id}", response_model=TransactionOut)
def read_transaction(transaction_id: UUID, db: Session = Depends(get_db)):
    return get_transaction(db, transaction_id)


@router.patch("/transactions/{transaction_id}", response_model=TransactionOut)
def edit_transaction(transaction_id: UUID, payload: TransactionUpdate, db: Session = Depends(get_db)):
    tx = get_transaction(db, transaction_id)

    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        if v is None:
            continue
        setattr(tx, k, v.strip() if isinstance(v, str) else v)

    db.commit()
    db.refresh(tx)
    return tx


@router.delete("/transactions/{transaction_id}")
def delete_transaction(transaction_id: UUID, db: Session = Depends(get_db)):
    tx = get_transaction(db, transaction_id)
    db.delete(tx)
    db.commit()
    return {"deleted": True}


@router.get("/summary")
def read_summary(
    type: str | None = None,
    start: date | None = None,
    end: date | None = None,
    db: Session = Depends(get_db),
):
    totals = compute_totals(db, type=type, start=start, end=end)
    return {
        "totalIncome": totals.income,
        "totalExpense": totals.expense,
        "balance": totals.balance,
        "marginPercent": totals.margin_percent,
    }


@router.get("/export")
def export_transactions(
    type: str | None = None,
    start: date | None = None,
    end: date | None = None,
    db: Session = Depends(get_db),
):
    now = datetime.now()
    content = finance_csv(
        list_transactions(db, type=type, start=start, end=end),
        business_name=settings.BUSINESS_NAME,
        generated_at=now,
    )
    filename = f"relatorio_financeiro_{now:%Y-%m-%d}.csv"
    return StreamingResponse(
        iter(["\ufeff" + content]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
