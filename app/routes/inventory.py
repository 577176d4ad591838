from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.admin import require_admin
from app.schemas.inventory import InventoryOut, InventoryUpdate
from app.services.inventory_service import list_inventory, set_inventory


router = APIRouter(prefix="/inventory", tags=["inventory"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[InventoryOut])
def read_inventory(needs_restock: bool | None = None, db: Session = Depends(get_db)):
    return list_inventory(db, needs_restock=needs_restock)


@router.put("/{product_id}", response_model=InventoryOut)
def update_inventory(product_id: UUID, payload: InventoryUpdate, db: Session = Depends(get_db)):
    row = set_inventory(db, product_id, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(row)
    return row
