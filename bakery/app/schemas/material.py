from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field, field_validator

from bakery.app.db.models.core_types import Unit
from bakery.services.units import from_canonical


class MaterialCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    current_quantity: Decimal = Field(default=Decimal("0"), ge=0)
    minimum_quantity: Decimal = Field(default=Decimal("0"), ge=0)
    unit: Unit = Unit.kg
    supplier_last_name: str | None = Field(default=None, max_length=120)
    supplier_first_name: str | None = Field(default=None, max_length=120)
    supplier_email: str | None = Field(default=None, max_length=255)
    supplier_phone: str | None = Field(default=None, max_length=32)


class MaterialPatch(BaseModel):
    """
    Mise à jour partielle explicite.

    - champ absent  -> inchangé
    - champ présent -> écrasé (null n'est accepté que pour les champs fournisseur)

    Les quantités présentes sont exprimées dans `unit` (la nouvelle unité si
    elle change aussi, sinon l'unité actuelle de la matière).
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    current_quantity: Decimal | None = Field(default=None, ge=0)
    minimum_quantity: Decimal | None = Field(default=None, ge=0)
    unit: Unit | None = None
    supplier_last_name: str | None = Field(default=None, max_length=120)
    supplier_first_name: str | None = Field(default=None, max_length=120)
    supplier_email: str | None = Field(default=None, max_length=255)
    supplier_phone: str | None = Field(default=None, max_length=32)

    @field_validator("name", "current_quantity", "minimum_quantity", "unit")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class StockChange(BaseModel):
    """Quantité d'un ajout de stock ou d'une consommation ; unité de la matière par défaut."""

    quantity: Decimal = Field(gt=0)
    unit: Unit | None = None


class MaterialRead(BaseModel):
    id: int
    name: str
    current_quantity_kg: Decimal
    minimum_quantity_kg: Decimal
    unit: Unit
    is_below_minimum: bool
    supplier_last_name: str | None
    supplier_first_name: str | None
    supplier_email: str | None
    supplier_phone: str | None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def current_quantity_units(self) -> Decimal:
        return from_canonical(self.current_quantity_kg, self.unit)

    @computed_field
    @property
    def minimum_quantity_units(self) -> Decimal:
        return from_canonical(self.minimum_quantity_kg, self.unit)


class ConsumptionRead(BaseModel):
    id: int
    material_id: int
    material_name: str
    quantity_kg: Decimal
    consumed_at: datetime

    class Config:
        from_attributes = True


class ConsumptionUpdate(BaseModel):
    quantity_kg: Decimal = Field(gt=0)


class DailyConsumptionRead(BaseModel):
    material_id: int
    material_name: str
    day: date
    total_kg: Decimal

    class Config:
        from_attributes = True
