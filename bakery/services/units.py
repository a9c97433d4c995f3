"""
Conversion d'unités.

Le stock des matières est TOUJOURS stocké en kg ; les sacs ne sont qu'une
unité de saisie / d'affichage. Fonctions pures, sans accès DB.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from bakery.app.db.models.core_types import Unit
from bakery.services.errors import InvalidQuantity, InvalidUnit

UNIT_FACTORS: dict[Unit, Decimal] = {
    Unit.kg: Decimal("1"),
    Unit.sack20: Decimal("20"),
    Unit.sack50: Decimal("50"),
}

# précision de stockage des colonnes kg (Numeric(14, 3))
KG_STEP = Decimal("0.001")


def parse_unit(value: Unit | str) -> Unit:
    if isinstance(value, Unit):
        return value
    try:
        return Unit(str(value).strip())
    except ValueError:
        raise InvalidUnit(value) from None


def parse_quantity(value: Decimal | int | float | str) -> Decimal:
    """Quantité quelconque -> Decimal fini. Ne vérifie pas le signe."""
    if isinstance(value, bool):
        raise InvalidQuantity(value, "must be numeric")
    try:
        # str() pour éviter d'hériter des artefacts binaires d'un float
        quantity = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidQuantity(value, "must be numeric") from None
    if not quantity.is_finite():
        raise InvalidQuantity(value, "must be finite")
    return quantity


def to_canonical(quantity: Decimal | int | float | str, unit: Unit | str) -> Decimal:
    return parse_quantity(quantity) * UNIT_FACTORS[parse_unit(unit)]


def from_canonical(kilograms: Decimal | int | float | str, unit: Unit | str) -> Decimal:
    return parse_quantity(kilograms) / UNIT_FACTORS[parse_unit(unit)]


def positive_kg(quantity: Decimal | int | float | str, unit: Unit | str) -> Decimal:
    """
    Convertit une quantité de mouvement en kg arrondis au gramme.

    Elle doit rester > 0 après arrondi, sinon InvalidQuantity.
    """
    kg = _quantize_kg(to_canonical(quantity, unit), quantity)
    if kg <= 0:
        raise InvalidQuantity(quantity)
    return kg


def non_negative_kg(quantity: Decimal | int | float | str, unit: Unit | str) -> Decimal:
    kg = _quantize_kg(to_canonical(quantity, unit), quantity)
    if kg < 0:
        raise InvalidQuantity(quantity, "must be greater than or equal to 0")
    return kg


def _quantize_kg(kg: Decimal, original: object) -> Decimal:
    try:
        return kg.quantize(KG_STEP)
    except InvalidOperation:
        raise InvalidQuantity(original, "is out of range") from None
