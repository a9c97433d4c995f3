"""
Rapports de stock (lecture seule, dérivés du journal).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bakery.app.db.models.models_v1 import ConsumptionEntry, Material
from bakery.services.consumption import ConsumptionFilter, apply_filter, consumption_day
from bakery.services.pagination import Page, check_window, count_rows
from bakery.services.units import KG_STEP


@dataclass(frozen=True)
class DailyConsumption:
    material_id: int
    material_name: str
    day: date
    total_kg: Decimal


def as_date(value: date | str) -> date:
    # SQLite renvoie date() sous forme de texte 'YYYY-MM-DD'
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def daily_consumption_summary(db: Session, flt: ConsumptionFilter | None = None) -> Page[DailyConsumption]:
    """
    Total consommé par (matière, jour).

    Avec `exact_date`, donne le total par matière pour ce seul jour.
    `total` compte les groupes qui satisfont le MÊME filtre.
    """
    flt = flt or ConsumptionFilter()
    check_window(flt.limit, flt.offset)

    day = consumption_day()
    total_kg = func.sum(ConsumptionEntry.quantity_kg)

    stmt = apply_filter(
        select(
            Material.id,
            Material.name,
            day.label("day"),
            total_kg.label("total_kg"),
        )
        .select_from(ConsumptionEntry)
        .join(Material, Material.id == ConsumptionEntry.material_id),
        flt,
    ).group_by(Material.id, Material.name, day)

    total = count_rows(db, stmt)

    rows = db.execute(
        stmt.order_by(day.desc(), total_kg.desc(), Material.name)
        .limit(flt.limit)
        .offset(flt.offset)
    ).all()

    items = [
        DailyConsumption(
            material_id=int(material_id),
            material_name=name,
            day=as_date(row_day),
            total_kg=Decimal(str(kg)).quantize(KG_STEP),
        )
        for material_id, name, row_day, kg in rows
    ]
    return Page(items=items, total=total, limit=flt.limit, offset=flt.offset)


def materials_below_minimum(db: Session) -> list[Material]:
    """Matières dont le stock est au niveau du seuil minimum ou en dessous."""
    return list(
        db.execute(
            select(Material)
            .where(Material.current_quantity_kg <= Material.minimum_quantity_kg)
            .order_by(Material.name)
        )
        .scalars()
        .all()
    )
