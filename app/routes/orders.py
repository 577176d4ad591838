from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.admin import require_admin
from app.schemas.order import OrderOut
from app.services.loyalty_service import order_quantity
from app.services.order_service import (
    LoyaltyOutcome,
    approve_order,
    get_order,
    items_summary,
    list_orders,
    reject_order,
    retry_order_loyalty,
)


router = APIRouter(prefix="/orders", tags=["orders"], dependencies=[Depends(require_admin)])


def _approval_response(order, outcome: LoyaltyOutcome) -> dict:
    return {
        "orderId": str(order.id),
        "status": order.status,
        "loyaltyRecorded": outcome.recorded,
        "loyaltyPoints": outcome.points,
        "loyaltyAccountCreated": outcome.created,
        "loyaltyCycleExpired": outcome.cycle_expired,
        "loyaltyError": outcome.error,
    }


@router.get("", response_model=list[OrderOut])
def read_orders(
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return list_orders(db, status=status, limit=limit, offset=offset)


@router.get("/{order_id}")
def read_order(order_id: UUID, db: Session = Depends(get_db)):
    order = get_order(db, order_id)
    return {
        "order": OrderOut.model_validate(order),
        "itemsSummary": items_summary(order),
        "totalQuantity": order_quantity(i.quantity for i in order.items),
    }


@router.post("/{order_id}/approve")
def approve(order_id: UUID, db: Session = Depends(get_db)):
    order = get_order(db, order_id)
    outcome = approve_order(db, order)
    db.refresh(order)
    return _approval_response(order, outcome)


@router.post("/{order_id}/loyalty/retry")
def retry_loyalty(order_id: UUID, db: Session = Depends(get_db)):
    order = get_order(db, order_id)
    outcome = retry_order_loyalty(db, order)
    db.refresh(order)
    return _approval_response(order, outcome)


@router.post("/{order_id}/reject", response_model=OrderOut)
def reject(order_id: UUID, db: Session = Depends(get_db)):
    order = get_order(db, order_id)
    reject_order(db, order)
    db.commit()
    db.refresh(order)
    return order


@router.delete("/{order_id}")
def delete_order(order_id: UUID, db: Session = Depends(get_db)):
    order = get_order(db, order_id)
    db.delete(order)
    db.commit()
    return {"deleted": True}
