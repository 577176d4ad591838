from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.product import Product


def list_products(db: Session, *, category: str | None = None, include_inactive: bool = False):
    q = db.query(Product)
    if not include_inactive:
        q = q.filter(Product.is_active.is_(True))
    if category:
        q = q.filter(Product.category == category)
    return q.order_by(Product.name.asc()).all()


def get_active_product(db: Session, product_id: UUID) -> Product:
    product = (
        db.query(Product)
        .filter(Product.id == product_id, Product.is_active.is_(True))
        .first()
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def get_product(db: Session, product_id: UUID) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
