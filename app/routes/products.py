from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.admin import require_admin
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductOut, ProductUpdate
from app.services.catalog_service import get_active_product, get_product, list_products


router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[ProductOut])
def list_catalog(category: str | None = None, db: Session = Depends(get_db)):
    return list_products(db, category=category)


@router.get("/admin/all", response_model=list[ProductOut])
def list_all_products(
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return list_products(db, include_inactive=True)


@router.get("/{product_id}", response_model=ProductOut)
def read_product(product_id: UUID, db: Session = Depends(get_db)):
    return get_active_product(db, product_id)


@router.post("", response_model=ProductOut)
def create_product(
    payload: ProductCreate,
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product = Product(**payload.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: UUID,
    payload: ProductUpdate,
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product = get_product(db, product_id)

    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(product, k, v)

    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}")
def delete_product(
    product_id: UUID,
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
):
    # soft delete: order history keeps pointing at the product
    product = get_product(db, product_id)
    product.is_active = False
    db.commit()
    return {"deleted": True}
