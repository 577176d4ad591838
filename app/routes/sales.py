from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.admin import require_admin
from app.schemas.sale import ProductSalesOut, SaleCreate, SaleOut, SaleUpdate
from app.services.sales_service import (
    create_sale,
    delete_sale,
    get_sale,
    list_sales,
    sales_by_product,
    update_sale,
)


router = APIRouter(prefix="/sales", tags=["sales"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[SaleOut])
def read_sales(
    product_id: UUID | None = None,
    start: date | None = None,
    end: date | None = None,
    db: Session = Depends(get_db),
):
    return list_sales(db, product_id=product_id, start=start, end=end)


@router.get("/by-product", response_model=list[ProductSalesOut])
def read_sales_by_product(
    start: date | None = None,
    end: date | None = None,
    db: Session = Depends(get_db),
):
    return sales_by_product(db, start=start, end=end)


@router.post("", response_model=SaleOut)
def record_sale(payload: SaleCreate, db: Session = Depends(get_db)):
    sale = create_sale(db, payload)
    db.commit()
    db.refresh(sale)
    return sale


@router.get("/{sale_id}", response_model=SaleOut)
def read_sale(sale_id: UUID, db: Session = Depends(get_db)):
    return get_sale(db, sale_id)


@router.patch("/{sale_id}", response_model=SaleOut)
def edit_sale(sale_id: UUID, payload: SaleUpdate, db: Session = Depends(get_db)):
    sale = get_sale(db, sale_id)
    update_sale(db, sale, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(sale)
    return sale


@router.delete("/{sale_id}")
def remove_sale(sale_id: UUID, db: Session = Depends(get_db)):
    sale = get_sale(db, sale_id)
    delete_sale(db, sale)
    db.commit()
    return {"deleted": True}
