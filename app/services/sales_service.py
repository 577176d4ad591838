import logging
from datetime import date
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.product import Product
from app.models.sale import Sale
from app.schemas.sale import SaleCreate
from app.services.catalog_service import get_product
from app.services.inventory_service import record_units_sold


logger = logging.getLogger(__name__)


def list_sales(
    db: Session,
    *,
    product_id: UUID | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Sale]:
    q = db.query(Sale)
    if product_id:
        q = q.filter(Sale.product_id == product_id)
    if start:
        q = q.filter(Sale.date >= start)
    if end:
        q = q.filter(Sale.date <= end)
    return q.order_by(Sale.date.desc(), Sale.created_at.desc()).all()


def get_sale(db: Session, sale_id: UUID) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise HTTPException(status_code=404, detail="Sale not found")
    return sale


def create_sale(db: Session, payload: SaleCreate, *, today: date | None = None) -> Sale:
    product = get_product(db, payload.product_id)
    unit_price = payload.unit_price if payload.unit_price is not None else float(product.price)

    sale = Sale(
        product_id=product.id,
        quantity=payload.quantity,
        unit_price=unit_price,
        total_amount=round(payload.quantity * unit_price, 2),
        date=payload.date or today or date.today(),
        notes=payload.notes or None,
        created_by=payload.created_by,
    )
    db.add(sale)
    db.flush()
    record_units_sold(db, product.id, sale.quantity)

    logger.info(
        "sale recorded",
        extra={"sale_id": str(sale.id), "product_id": str(product.id), "quantity": sale.quantity},
    )
    return sale


def update_sale(db: Session, sale: Sale, data: dict) -> Sale:
    old_product_id, old_quantity = sale.product_id, int(sale.quantity)

    if data.get("product_id") is not None:
        sale.product_id = get_product(db, data["product_id"]).id
    for k in ("quantity", "unit_price", "date"):
        if data.get(k) is not None:
            setattr(sale, k, data[k])
    if "notes" in data:
        sale.notes = data["notes"] or None

    sale.total_amount = round(int(sale.quantity) * float(sale.unit_price), 2)
    db.flush()

    if sale.product_id != old_product_id:
        record_units_sold(db, old_product_id, -old_quantity)
        record_units_sold(db, sale.product_id, int(sale.quantity))
    else:
        record_units_sold(db, sale.product_id, int(sale.quantity) - old_quantity)
    return sale


def delete_sale(db: Session, sale: Sale):
    record_units_sold(db, sale.product_id, -int(sale.quantity))
    db.delete(sale)
    db.flush()
    logger.info("sale deleted", extra={"sale_id": str(sale.id)})


def sales_totals(sales: list[Sale]) -> tuple[int, float]:
    """(units sold, revenue) over the given sales."""
    quantity = sum(int(s.quantity) for s in sales)
    revenue = round(sum(float(s.total_amount) for s in sales), 2)
    return quantity, revenue


def sales_by_product(db: Session, *, start: date | None = None, end: date | None = None) -> list[dict]:
    total_qty = func.sum(Sale.quantity)
    total_revenue = func.sum(Sale.total_amount)

    q = db.query(Product.id, Product.name, total_qty, total_revenue).join(Sale, Sale.product_id == Product.id)
    if start:
        q = q.filter(Sale.date >= start)
    if end:
        q = q.filter(Sale.date <= end)

    rows = q.group_by(Product.id, Product.name).order_by(total_revenue.desc(), Product.name.asc()).all()
    return [
        {
            "product_id": product_id,
            "product_name": name,
            "total_quantity": int(qty or 0),
            "total_revenue": round(float(revenue or 0), 2),
        }
        for product_id, name, qty, revenue in rows
    ]
