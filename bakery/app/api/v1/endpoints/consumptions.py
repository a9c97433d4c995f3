from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from bakery.app.api.deps import get_db
from bakery.app.schemas.common import page_payload
from bakery.app.schemas.material import ConsumptionRead, ConsumptionUpdate, DailyConsumptionRead
from bakery.services import consumption, reporting
from bakery.services.consumption import ConsumptionFilter
from bakery.services.pagination import DEFAULT_LIMIT

router = APIRouter(prefix="/consumptions")


def _filter(name: str | None, day: date | None, limit: int, offset: int) -> ConsumptionFilter:
    return ConsumptionFilter(material_name_contains=name, exact_date=day, limit=limit, offset=offset)


@router.get("")
def list_consumptions(
    name: str | None = None,
    day: date | None = Query(default=None, alias="date"),
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    page = consumption.list_consumptions(db, _filter(name, day, limit, offset))
    return page_payload(page, ConsumptionRead)


@router.get("/daily")
def daily_consumptions(
    name: str | None = None,
    day: date | None = Query(default=None, alias="date"),
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    """
    Totaux par matière et par jour.
    - `date=YYYY-MM-DD` : totaux par matière pour ce jour
    - `total` compte les groupes filtrés, pas la table entière
    """
    page = reporting.daily_consumption_summary(db, _filter(name, day, limit, offset))
    return page_payload(page, DailyConsumptionRead)


@router.get("/{entry_id}", response_model=ConsumptionRead)
def get_consumption(entry_id: int, db: Session = Depends(get_db)):
    return consumption.get_consumption(db, entry_id)


@router.patch("/{entry_id}", response_model=ConsumptionRead)
def update_consumption(entry_id: int, payload: ConsumptionUpdate, db: Session = Depends(get_db)):
    return consumption.update_consumption_quantity(db, entry_id, payload.quantity_kg)


@router.delete("/{entry_id}", status_code=204)
def delete_consumption(entry_id: int, db: Session = Depends(get_db)):
    consumption.delete_consumption(db, entry_id)
    return Response(status_code=204)
