from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.cart_item import CartItem
from app.services.catalog_service import get_active_product


def get_cart_items(db: Session, session_id: str) -> list[CartItem]:
    return (
        db.query(CartItem)
        .filter(CartItem.session_id == session_id)
        .order_by(CartItem.created_at.asc())
        .all()
    )


def line_total(item: CartItem) -> float:
    return round(float(item.product.price) * int(item.quantity), 2)


def cart_subtotal(items: list[CartItem]) -> float:
    return round(sum(float(i.product.price) * int(i.quantity) for i in items), 2)


def _get_session_item(db: Session, session_id: str, item_id: UUID) -> CartItem:
    item = (
        db.query(CartItem)
        .filter(CartItem.id == item_id, CartItem.session_id == session_id)
        .first()
    )
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item


def add_to_cart(db: Session, session_id: str, product_id: UUID, quantity: int = 1) -> CartItem:
    if quantity < 1:
        raise HTTPException(status_code=400, detail="quantity must be >= 1")

    product = get_active_product(db, product_id)

    existing = (
        db.query(CartItem)
        .filter(CartItem.session_id == session_id, CartItem.product_id == product.id)
        .with_for_update()
        .first()
    )
    if existing:
        existing.quantity = int(existing.quantity) + quantity
        db.flush()
        return existing

    item = CartItem(session_id=session_id, product_id=product.id, quantity=quantity)
    db.add(item)
    db.flush()
    return item


def update_cart_item(db: Session, session_id: str, item_id: UUID, quantity: int) -> CartItem | None:
    item = _get_session_item(db, session_id, item_id)
    if quantity <= 0:
        db.delete(item)
        db.flush()
        return None

    item.quantity = quantity
    db.flush()
    return item


def remove_cart_item(db: Session, session_id: str, item_id: UUID) -> None:
    item = _get_session_item(db, session_id, item_id)
    db.delete(item)
    db.flush()


def clear_cart(db: Session, session_id: str) -> int:
    removed = (
        db.query(CartItem)
        .filter(CartItem.session_id == session_id)
        .delete(synchronize_session=False)
    )
    db.flush()
    return removed
