import secrets
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.session import get_cart_session
from app.schemas.cart import CartItemAdd, CartItemUpdate, CartOut, CartSessionOut
from app.schemas.product import ProductOut
from app.services.cart_service import (
    add_to_cart,
    cart_subtotal,
    clear_cart,
    get_cart_items,
    line_total,
    remove_cart_item,
    update_cart_item,
)


router = APIRouter(prefix="/cart", tags=["cart"])


def _cart_out(db: Session, session_id: str) -> dict:
    items = get_cart_items(db, session_id)
    return {
        "session_id": session_id,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "quantity": i.quantity,
                "line_total": line_total(i),
                "product": ProductOut.model_validate(i.product),
                "created_at": i.created_at,
            }
            for i in items
        ],
        "item_count": sum(int(i.quantity) for i in items),
        "subtotal": cart_subtotal(items),
    }


@router.post("/sessions", response_model=CartSessionOut)
def open_cart_session():
    return {"session_id": secrets.token_urlsafe(24)}


@router.get("", response_model=CartOut)
def read_cart(
    session_id: str = Depends(get_cart_session),
    db: Session = Depends(get_db),
):
    return _cart_out(db, session_id)


@router.post("/items", response_model=CartOut)
def add_cart_item(
    payload: CartItemAdd,
    session_id: str = Depends(get_cart_session),
    db: Session = Depends(get_db),
):
    add_to_cart(db, session_id, payload.product_id, payload.quantity)
    db.commit()
    return _cart_out(db, session_id)


@router.patch("/items/{item_id}", response_model=CartOut)
def change_cart_item(
    item_id: UUID,
    payload: CartItemUpdate,
    session_id: str = Depends(get_cart_session),
    db: Session = Depends(get_db),
):
    update_cart_item(db, session_id, item_id, payload.quantity)
    db.commit()
    return _cart_out(db, session_id)


@router.delete("/items/{item_id}", response_model=CartOut)
def delete_cart_item(
    item_id: UUID,
    session_id: str = Depends(get_cart_session),
    db: Session = Depends(get_db),
):
    remove_cart_item(db, session_id, item_id)
    db.commit()
    return _cart_out(db, session_id)


@router.delete("")
def empty_cart(
    session_id: str = Depends(get_cart_session),
    db: Session = Depends(get_db),
):
    removed = clear_cart(db, session_id)
    db.commit()
    return {"removed": removed}
