"""
Consumption ledger.

Règle métier :
    stock matière (kg) = stock initial + ajouts - SUM(consommations en cours)

Chaque écriture du journal et la variation de stock correspondante sont
appliquées dans UNE transaction :
- record  : débit matière + insertion ligne
- update  : débit/crédit du delta + mise à jour ligne
- delete  : crédit de la quantité + suppression ligne

L'horodatage est toujours celui de l'écriture, jamais fourni par l'appelant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, joinedload

from bakery.app.app_logging import get_logger
from bakery.app.db.models.core_types import Unit
from bakery.app.db.models.models_v1 import ConsumptionEntry, Material, utcnow
from bakery.app.db.session import transaction
from bakery.services.errors import NotFound
from bakery.services.materials import credit_kg, debit_kg, lock_material
from bakery.services.pagination import DEFAULT_LIMIT, Page, check_window, count_rows
from bakery.services.units import positive_kg

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConsumptionFilter:
    material_name_contains: str | None = None
    exact_date: date | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0


def consumption_day():
    """Jour calendaire (UTC) d'une consommation, portable SQLite / PostgreSQL."""
    return func.date(ConsumptionEntry.consumed_at)


def apply_filter(stmt: Select, flt: ConsumptionFilter) -> Select:
    """Prédicat commun à la liste et aux rapports (le total doit suivre le même)."""
    name = (flt.material_name_contains or "").strip()
    if name:
        stmt = stmt.where(func.lower(Material.name).contains(name.lower(), autoescape=True))
    if flt.exact_date is not None:
        stmt = stmt.where(consumption_day() == flt.exact_date.isoformat())
    return stmt


def _lock_entry(db: Session, entry_id: int) -> ConsumptionEntry:
    entry = (
        db.execute(
            select(ConsumptionEntry)
            .where(ConsumptionEntry.id == entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        .scalar_one_or_none()
    )
    if not entry:
        raise NotFound("consumption", entry_id)
    return entry


# ---------- Queries ----------
def get_consumption(db: Session, entry_id: int) -> ConsumptionEntry:
    entry = db.get(ConsumptionEntry, entry_id)
    if not entry:
        raise NotFound("consumption", entry_id)
    return entry


def list_consumptions(db: Session, flt: ConsumptionFilter | None = None) -> Page[ConsumptionEntry]:
    flt = flt or ConsumptionFilter()
    check_window(flt.limit, flt.offset)

    stmt = apply_filter(
        select(ConsumptionEntry).join(Material, Material.id == ConsumptionEntry.material_id),
        flt,
    )
    total = count_rows(db, stmt)

    rows = (
        db.execute(
            stmt.options(joinedload(ConsumptionEntry.material))
            .order_by(ConsumptionEntry.consumed_at.desc(), ConsumptionEntry.id.desc())
            .limit(flt.limit)
            .offset(flt.offset)
        )
        .scalars()
        .all()
    )
    return Page(items=rows, total=total, limit=flt.limit, offset=flt.offset)


# ---------- Mutations ----------
def record_consumption(
    db: Session,
    material_id: int,
    quantity: Decimal | int | float | str,
    unit: Unit | str | None = None,
) -> ConsumptionEntry:
    """
    Consomme `quantity` (unité de la matière par défaut).

    Stock insuffisant -> InsufficientStock, ni débit ni ligne de journal.
    """
    with transaction(db):
        material = lock_material(db, material_id)
        kg = positive_kg(quantity, unit if unit is not None else material.unit)

        debit_kg(material, kg)
        entry = ConsumptionEntry(material_id=material.id, quantity_kg=kg, consumed_at=utcnow())
        db.add(entry)
        db.flush()

        logger.info(
            "consumption_recorded",
            extra={
                "entry_id": entry.id,
                "material_id": material.id,
                "kg": kg,
                "current_kg": material.current_quantity_kg,
            },
        )

    return entry


def update_consumption_quantity(
    db: Session,
    entry_id: int,
    new_quantity_kg: Decimal | int | float | str,
) -> ConsumptionEntry:
    """
    Corrige la quantité (en kg) d'une consommation et réconcilie le stock.

    delta > 0 : on débite encore la matière (refusé si le stock passerait
    sous zéro) ; delta < 0 : on recrédite.
    """
    with transaction(db):
        entry = _lock_entry(db, entry_id)
        new_kg = positive_kg(new_quantity_kg, Unit.kg)
        material = lock_material(db, entry.material_id)

        old_kg = entry.quantity_kg
        delta = new_kg - old_kg
        if delta > 0:
            debit_kg(material, delta)
        elif delta < 0:
            credit_kg(material, -delta)

        entry.quantity_kg = new_kg
        db.flush()

        logger.info(
            "consumption_updated",
            extra={
                "entry_id": entry.id,
                "material_id": material.id,
                "old_kg": old_kg,
                "new_kg": new_kg,
                "current_kg": material.current_quantity_kg,
            },
        )

    return entry


def delete_consumption(db: Session, entry_id: int) -> None:
    with transaction(db):
        entry = _lock_entry(db, entry_id)
        material = lock_material(db, entry.material_id)

        restored_kg = entry.quantity_kg
        credit_kg(material, restored_kg)
        db.delete(entry)
        db.flush()

        logger.info(
            "consumption_deleted",
            extra={
                "entry_id": entry_id,
                "material_id": material.id,
                "restored_kg": restored_kg,
                "current_kg": material.current_quantity_kg,
            },
        )
