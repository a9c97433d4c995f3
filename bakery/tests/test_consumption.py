from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from bakery.app.db.models.core_types import Unit
from bakery.app.db.models.models_v1 import ConsumptionEntry
from bakery.services import consumption, materials
from bakery.services.consumption import ConsumptionFilter
from bakery.services.errors import InsufficientStock, InvalidQuantity, InvalidUnit, NotFound


def _entries(db, material_id):
    return db.scalar(
        select(func.count()).select_from(ConsumptionEntry).where(ConsumptionEntry.material_id == material_id)
    )


@pytest.fixture
def flour(db_session):
    return materials.create_material(db_session, name="Flour", initial_quantity=100, unit=Unit.kg)


def test_record_debits_stock_and_appends_entry(db_session, flour):
    """
    GIVEN
    - Flour à 100 kg

    WHEN
    - consommation de 20 kg

    THEN
    - stock == 80 kg
    - une seule entrée de 20 kg, horodatée au moment de l'écriture
    """
    before = datetime.now(timezone.utc)
    entry = consumption.record_consumption(db_session, flour.id, 20, Unit.kg)

    assert flour.current_quantity_kg == Decimal("80")
    assert entry.quantity_kg == Decimal("20")
    assert entry.material_id == flour.id
    assert entry.material_name == "Flour"
    assert _entries(db_session, flour.id) == 1

    # SQLite relit les dates sans fuseau
    consumed_at = entry.consumed_at.replace(tzinfo=timezone.utc)
    assert before - timedelta(seconds=1) <= consumed_at <= datetime.now(timezone.utc) + timedelta(seconds=1)


def test_insufficient_stock_leaves_no_trace(db_session):
    """
    GIVEN
    - une matière à 40 kg

    WHEN
    - consommation d'un sac de 50 kg

    THEN
    - InsufficientStock, stock toujours 40 kg, aucune entrée
    """
    flour = materials.create_material(db_session, name="Flour", initial_quantity=40)

    with pytest.raises(InsufficientStock):
        consumption.record_consumption(db_session, flour.id, 1, "sack50")

    db_session.refresh(flour)
    assert flour.current_quantity_kg == Decimal("40")
    assert _entries(db_session, flour.id) == 0


def test_record_uses_material_unit_by_default(db_session):
    flour = materials.create_material(db_session, name="Flour", initial_quantity=4, unit=Unit.sack50)

    entry = consumption.record_consumption(db_session, flour.id, "0.5")

    assert entry.quantity_kg == Decimal("25")
    assert flour.current_quantity_kg == Decimal("175")


def test_record_rejects_bad_input(db_session, flour):
    with pytest.raises(NotFound):
        consumption.record_consumption(db_session, 999, 1, Unit.kg)
    with pytest.raises(InvalidQuantity):
        consumption.record_consumption(db_session, flour.id, 0, Unit.kg)
    with pytest.raises(InvalidQuantity):
        consumption.record_consumption(db_session, flour.id, -5, Unit.kg)
    with pytest.raises(InvalidUnit):
        consumption.record_consumption(db_session, flour.id, 1, "bag")

    db_session.refresh(flour)
    assert flour.current_quantity_kg == Decimal("100")
    assert _entries(db_session, flour.id) == 0


def test_update_applies_the_delta(db_session, flour):
    """
    GIVEN
    - une entrée de 10 kg (stock 90 kg)

    THEN
    - 10 -> 15 kg : stock 85 kg
    - 15 -> 5 kg  : stock 95 kg
    """
    entry = consumption.record_consumption(db_session, flour.id, 10, Unit.kg)
    assert flour.current_quantity_kg == Decimal("90")

    entry = consumption.update_consumption_quantity(db_session, entry.id, 15)
    assert entry.quantity_kg == Decimal("15")
    assert flour.current_quantity_kg == Decimal("85")

    entry = consumption.update_consumption_quantity(db_session, entry.id, "5")
    assert entry.quantity_kg == Decimal("5")
    assert flour.current_quantity_kg == Decimal("95")


def test_update_that_would_drive_stock_negative_is_rejected(db_session):
    flour = materials.create_material(db_session, name="Flour", initial_quantity=30)
    entry = consumption.record_consumption(db_session, flour.id, 20, Unit.kg)

    with pytest.raises(InsufficientStock) as exc:
        consumption.update_consumption_quantity(db_session, entry.id, 35)
    assert exc.value.requested == Decimal("15")

    db_session.refresh(flour)
    db_session.refresh(entry)
    assert flour.current_quantity_kg == Decimal("10")
    assert entry.quantity_kg == Decimal("20")


def test_update_rejects_bad_input(db_session, flour):
    entry = consumption.record_consumption(db_session, flour.id, 10, Unit.kg)

    with pytest.raises(NotFound):
        consumption.update_consumption_quantity(db_session, 999, 5)
    with pytest.raises(InvalidQuantity):
        consumption.update_consumption_quantity(db_session, entry.id, 0)

    db_session.refresh(entry)
    assert entry.quantity_kg == Decimal("10")


def test_delete_restores_stock_exactly(db_session, flour):
    entry = consumption.record_consumption(db_session, flour.id, "1.234", Unit.sack20)
    assert flour.current_quantity_kg == Decimal("75.32")

    consumption.delete_consumption(db_session, entry.id)

    assert flour.current_quantity_kg == Decimal("100")
    assert _entries(db_session, flour.id) == 0

    with pytest.raises(NotFound):
        consumption.get_consumption(db_session, entry.id)
    with pytest.raises(NotFound):
        consumption.delete_consumption(db_session, entry.id)


def test_ledger_reconciles_with_stock(db_session, flour):
    """
    stock courant == stock initial + ajouts - somme des consommations restantes
    """
    credits = Decimal("0")
    e1 = consumption.record_consumption(db_session, flour.id, 12, Unit.kg)
    consumption.record_consumption(db_session, flour.id, 1, Unit.sack20)
    materials.credit(db_session, flour.id, 1, Unit.sack50)
    credits += Decimal("50")
    e3 = consumption.record_consumption(db_session, flour.id, "7.5", Unit.kg)
    consumption.update_consumption_quantity(db_session, e1.id, 2)
    consumption.delete_consumption(db_session, e3.id)

    remaining = db_session.scalar(
        select(func.coalesce(func.sum(ConsumptionEntry.quantity_kg), 0)).where(
            ConsumptionEntry.material_id == flour.id
        )
    )

    assert Decimal(str(remaining)) == Decimal("22")
    assert flour.current_quantity_kg == Decimal("100") + credits - Decimal("22")
    assert flour.current_quantity_kg >= 0


def test_list_filters_and_counts_on_the_same_predicate(db_session):
    flour = materials.create_material(db_session, name="Farine", initial_quantity=100)
    sugar = materials.create_material(db_session, name="Sucre", initial_quantity=100)
    for _ in range(3):
        consumption.record_consumption(db_session, flour.id, 1, Unit.kg)
    consumption.record_consumption(db_session, sugar.id, 1, Unit.kg)

    page = consumption.list_consumptions(
        db_session, ConsumptionFilter(material_name_contains="FAR", limit=2)
    )
    assert page.total == 3
    assert len(page.items) == 2
    assert all(e.material_name == "Farine" for e in page.items)

    # plus récente d'abord
    everything = consumption.list_consumptions(db_session)
    assert everything.total == 4
    assert everything.items[0].material_name == "Sucre"


def test_list_exact_date(db_session, flour):
    consumption.record_consumption(db_session, flour.id, 1, Unit.kg)
    today = datetime.now(timezone.utc).date()

    assert consumption.list_consumptions(db_session, ConsumptionFilter(exact_date=today)).total == 1
    assert (
        consumption.list_consumptions(
            db_session, ConsumptionFilter(exact_date=today - timedelta(days=1))
        ).total
        == 0
    )
