from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from bakery.app.api.deps import get_db
from bakery.app.schemas.common import page_payload
from bakery.app.schemas.product import (
    ProductCreate,
    ProductPatch,
    ProductRead,
    SaleCreate,
    SaleRead,
)
from bakery.services import products
from bakery.services.pagination import DEFAULT_LIMIT

router = APIRouter(prefix="/products")


@router.get("")
def list_products(
    search: str = "",
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    page = products.list_products(db, search=search, limit=limit, offset=offset)
    return page_payload(page, ProductRead)


@router.post("", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return products.create_product(
        db,
        name=payload.name,
        type=payload.type,
        price=payload.price,
        stock_quantity=payload.stock_quantity,
        showcase_quantity=payload.showcase_quantity,
    )


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return products.get_product(db, product_id)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(product_id: int, payload: ProductPatch, db: Session = Depends(get_db)):
    return products.update_product(db, product_id, payload)


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    products.delete_product(db, product_id)
    return Response(status_code=204)


@router.post("/{product_id}/sell", response_model=SaleRead, status_code=201)
def sell(product_id: int, payload: SaleCreate, db: Session = Depends(get_db)):
    return products.sell_from_showcase(db, product_id, payload.quantity)
