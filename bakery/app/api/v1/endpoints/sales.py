from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bakery.app.api.deps import get_db
from bakery.app.schemas.common import page_payload
from bakery.app.schemas.product import DailySalesRead, SaleRead
from bakery.services import products
from bakery.services.pagination import DEFAULT_LIMIT

router = APIRouter(prefix="/sales")


@router.get("")
def list_sales(
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    page = products.list_sales(db, limit=limit, offset=offset)
    return page_payload(page, SaleRead)


@router.get("/daily", response_model=list[DailySalesRead])
def daily_sales(db: Session = Depends(get_db)):
    return products.daily_sales_summary(db)
