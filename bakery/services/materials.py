"""
Material ledger service.

Seul point d'écriture du stock des matières premières. Toutes les quantités
persistées sont en kg ; l'unité d'entrée est convertie ici via
`bakery.services.units`.

Les helpers `lock_material`, `debit_kg` et `credit_kg` ne commitent pas :
ils sont faits pour être composés dans la transaction d'un autre service
(cf. consumption.py). Les fonctions publiques ouvrent leur propre
transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bakery.app.app_logging import get_logger
from bakery.app.db.models.core_types import Unit
from bakery.app.db.models.models_v1 import Material
from bakery.app.db.session import transaction
from bakery.app.schemas.material import MaterialPatch
from bakery.services.errors import DuplicateName, InsufficientStock, InvalidName, NotFound
from bakery.services.pagination import DEFAULT_LIMIT, Page, check_window, count_rows
from bakery.services.units import non_negative_kg, parse_unit, positive_kg

logger = get_logger(__name__)

SUPPLIER_FIELDS = (
    "supplier_last_name",
    "supplier_first_name",
    "supplier_email",
    "supplier_phone",
)


@dataclass(frozen=True)
class SupplierInfo:
    last_name: str | None = None
    first_name: str | None = None
    email: str | None = None
    phone: str | None = None


# ---------- Helpers ----------
def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidName(name)
    return cleaned


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _ensure_name_available(db: Session, name: str, *, exclude_id: int | None = None) -> None:
    stmt = select(Material.id).where(func.lower(Material.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(Material.id != exclude_id)
    if db.execute(stmt).first() is not None:
        raise DuplicateName("material", name)


def _flush_or_duplicate(db: Session, name: str) -> None:
    # quantités déjà validées : seul l'index unique lower(name) peut lever ici
    try:
        db.flush()
    except IntegrityError:
        raise DuplicateName("material", name) from None


def lock_material(db: Session, material_id: int) -> Material:
    material = (
        db.execute(
            select(Material)
            .where(Material.id == material_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        .scalar_one_or_none()
    )
    if not material:
        raise NotFound("material", material_id)
    return material


def debit_kg(material: Material, kg: Decimal) -> None:
    if material.current_quantity_kg < kg:
        raise InsufficientStock("material", material.id, material.current_quantity_kg, kg)
    material.current_quantity_kg = material.current_quantity_kg - kg


def credit_kg(material: Material, kg: Decimal) -> None:
    material.current_quantity_kg = material.current_quantity_kg + kg


# ---------- Queries ----------
def get_material(db: Session, material_id: int) -> Material:
    material = db.get(Material, material_id)
    if not material:
        raise NotFound("material", material_id)
    return material


def list_materials(
    db: Session,
    *,
    search: str = "",
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> Page[Material]:
    check_window(limit, offset)

    stmt = select(Material)
    search = (search or "").strip()
    if search:
        stmt = stmt.where(func.lower(Material.name).contains(search.lower(), autoescape=True))

    total = count_rows(db, stmt)
    rows = db.execute(stmt.order_by(Material.id.desc()).limit(limit).offset(offset)).scalars().all()
    return Page(items=rows, total=total, limit=limit, offset=offset)


# ---------- Mutations ----------
def create_material(
    db: Session,
    *,
    name: str,
    initial_quantity: Decimal | int | float | str = 0,
    unit: Unit | str = Unit.kg,
    minimum_quantity: Decimal | int | float | str = 0,
    supplier: SupplierInfo | None = None,
) -> Material:
    name = _clean_name(name)
    unit = parse_unit(unit)
    current_kg = non_negative_kg(initial_quantity, unit)
    minimum_kg = non_negative_kg(minimum_quantity, unit)
    supplier = supplier or SupplierInfo()

    with transaction(db):
        _ensure_name_available(db, name)

        material = Material(
            name=name,
            current_quantity_kg=current_kg,
            minimum_quantity_kg=minimum_kg,
            unit=unit,
            supplier_last_name=_clean_optional(supplier.last_name),
            supplier_first_name=_clean_optional(supplier.first_name),
            supplier_email=_clean_optional(supplier.email),
            supplier_phone=_clean_optional(supplier.phone),
        )
        db.add(material)
        _flush_or_duplicate(db, name)

        logger.info(
            "material_created",
            extra={"material_id": material.id, "name": name, "current_kg": current_kg, "unit": unit.value},
        )

    return material


def update_material(db: Session, material_id: int, patch: MaterialPatch) -> Material:
    """
    Applique un patch explicite.

    Changer l'unité ne re-dérive PAS les kg déjà stockés : seules les
    quantités présentes dans le patch sont converties, avec la nouvelle unité.
    """
    changes = patch.model_dump(exclude_unset=True)

    with transaction(db):
        material = lock_material(db, material_id)

        if "name" in changes:
            name = _clean_name(changes["name"])
            if name.lower() != material.name.lower():
                _ensure_name_available(db, name, exclude_id=material.id)
            material.name = name

        unit = parse_unit(changes["unit"]) if "unit" in changes else material.unit
        if "current_quantity" in changes:
            material.current_quantity_kg = non_negative_kg(changes["current_quantity"], unit)
        if "minimum_quantity" in changes:
            material.minimum_quantity_kg = non_negative_kg(changes["minimum_quantity"], unit)
        material.unit = unit

        for field in SUPPLIER_FIELDS:
            if field in changes:
                setattr(material, field, _clean_optional(changes[field]))

        _flush_or_duplicate(db, material.name)

        logger.info(
            "material_updated",
            extra={"material_id": material.id, "fields": sorted(changes)},
        )

    return material


def credit(
    db: Session,
    material_id: int,
    quantity: Decimal | int | float | str,
    unit: Unit | str | None = None,
) -> Material:
    """Ajout de stock ; l'unité par défaut est celle de la matière."""
    with transaction(db):
        material = lock_material(db, material_id)
        kg = positive_kg(quantity, unit if unit is not None else material.unit)
        credit_kg(material, kg)
        db.flush()

        logger.info(
            "material_credited",
            extra={"material_id": material.id, "kg": kg, "current_kg": material.current_quantity_kg},
        )

    return material


def debit(
    db: Session,
    material_id: int,
    quantity: Decimal | int | float | str,
    unit: Unit | str | None = None,
) -> Material:
    """
    Retrait de stock SANS écriture au journal.

    Pour une consommation tracée, passer par
    `bakery.services.consumption.record_consumption`.
    """
    with transaction(db):
        material = lock_material(db, material_id)
        kg = positive_kg(quantity, unit if unit is not None else material.unit)
        debit_kg(material, kg)
        db.flush()

        logger.info(
            "material_debited",
            extra={"material_id": material.id, "kg": kg, "current_kg": material.current_quantity_kg},
        )

    return material


def delete_material(db: Session, material_id: int) -> None:
    # les consommations partent via ON DELETE CASCADE (passive_deletes)
    with transaction(db):
        material = lock_material(db, material_id)
        db.delete(material)
        db.flush()

        logger.info("material_deleted", extra={"material_id": material_id})
