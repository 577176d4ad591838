from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import settings
from app.db import get_db
from app.deps.session import get_cart_session
from app.schemas.order import CheckoutCreate, CheckoutOut
from app.services.order_service import checkout_cart


router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("", response_model=CheckoutOut)
def checkout(
    payload: CheckoutCreate,
    session_id: str = Depends(get_cart_session),
    db: Session = Depends(get_db),
):
    order, message, url = checkout_cart(
        db,
        session_id,
        payload,
        delivery_fee=settings.DELIVERY_FEE,
        whatsapp_number=settings.WHATSAPP_NUMBER,
    )
    db.commit()

    return {
        "order_id": order.id,
        "status": order.status,
        "subtotal": order.subtotal,
        "delivery_fee": order.delivery_fee,
        "total": order.total,
        "whatsapp_message": message,
        "whatsapp_url": url,
    }
