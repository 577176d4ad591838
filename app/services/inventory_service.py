import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from app.models.product_inventory import ProductInventory
from app.services.catalog_service import get_product


logger = logging.getLogger(__name__)


def list_inventory(db: Session, *, needs_restock: bool | None = None) -> list[ProductInventory]:
    q = db.query(ProductInventory)
    if needs_restock is True:
        q = q.filter(ProductInventory.quantity_available <= ProductInventory.reorder_level)
    elif needs_restock is False:
        q = q.filter(ProductInventory.quantity_available > ProductInventory.reorder_level)
    return q.order_by(ProductInventory.created_at.desc()).all()


def set_inventory(db: Session, product_id: UUID, data: dict) -> ProductInventory:
    """
    Create or update the stock row of a product.

    Raising `quantity_available` above its previous value stamps
    `last_restocked`.
    """
    product = get_product(db, product_id)

    row = (
        db.query(ProductInventory)
        .filter(ProductInventory.product_id == product.id)
        .with_for_update()
        .first()
    )
    if row is None:
        row = ProductInventory(product_id=product.id, quantity_available=0, quantity_sold=0, reorder_level=0)
        db.add(row)

    previous = int(row.quantity_available or 0)
    if data.get("quantity_available") is not None:
        row.quantity_available = data["quantity_available"]
        if row.quantity_available > previous:
            row.last_restocked = datetime.now(timezone.utc).replace(tzinfo=None)
    if data.get("reorder_level") is not None:
        row.reorder_level = data["reorder_level"]

    db.flush()
    logger.info(
        "inventory updated",
        extra={
            "product_id": str(product.id),
            "quantity_available": row.quantity_available,
            "reorder_level": row.reorder_level,
        },
    )
    return row


def record_units_sold(db: Session, product_id: UUID, units: int) -> bool:
    """
    Move `units` from available to sold on the product's stock row, in one
    UPDATE. Negative `units` puts stock back (a sale was corrected or
    deleted). Available stock never drops below zero. Returns False when the
    product has no stock row.
    """
    if units == 0:
        return True

    remaining = ProductInventory.quantity_available - units
    stmt = (
        update(ProductInventory)
        .where(ProductInventory.product_id == product_id)
        .values(
            quantity_available=case((remaining < 0, 0), else_=remaining),
            quantity_sold=case(
                (ProductInventory.quantity_sold + units < 0, 0),
                else_=ProductInventory.quantity_sold + units,
            ),
        )
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount > 0
