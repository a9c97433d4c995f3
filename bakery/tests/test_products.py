from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from bakery.app.db.models.core_types import ProductType
from bakery.app.db.models.models_v1 import Product, Sale
from bakery.app.schemas.product import ProductPatch
from bakery.services import products
from bakery.services.errors import (
    DuplicateName,
    InsufficientStock,
    InvalidPrice,
    InvalidProductType,
    InvalidQuantity,
    NotFound,
)


@pytest.fixture
def croissant(db_session):
    return products.create_product(
        db_session,
        name="Croissant beurre",
        type="croissant",
        price="1.20",
        stock_quantity=30,
        showcase_quantity=10,
    )


def test_create_product(db_session, croissant):
    assert croissant.id is not None
    assert croissant.type is ProductType.croissant
    assert croissant.price == Decimal("1.20")
    assert croissant.showcase_quantity == 10


def test_create_product_rejects_invalid_input(db_session, croissant):
    with pytest.raises(DuplicateName):
        products.create_product(db_session, name="CROISSANT BEURRE", type="croissant", price=1)
    with pytest.raises(InvalidProductType):
        products.create_product(db_session, name="Tarte", type="tarte", price=3)
    with pytest.raises(InvalidPrice):
        products.create_product(db_session, name="Baguette", type="pain", price=0)
    with pytest.raises(InvalidPrice):
        products.create_product(db_session, name="Baguette", type="pain", price="gratuit")
    with pytest.raises(InvalidQuantity):
        products.create_product(db_session, name="Baguette", type="pain", price=1, showcase_quantity=-1)

    assert db_session.scalar(select(func.count()).select_from(Product)) == 1


def test_update_product(db_session, croissant):
    updated = products.update_product(
        db_session,
        croissant.id,
        ProductPatch(price=Decimal("1.35"), showcase_quantity=25),
    )

    assert updated.price == Decimal("1.35")
    assert updated.showcase_quantity == 25
    assert updated.stock_quantity == 30
    assert updated.name == "Croissant beurre"

    with pytest.raises(NotFound):
        products.update_product(db_session, 999, ProductPatch(price=Decimal("2")))


def test_sell_from_showcase(db_session, croissant):
    """
    GIVEN
    - 10 croissants en vitrine à 1.20

    WHEN
    - vente de 3

    THEN
    - vitrine == 7, une vente de 3.60
    """
    sale = products.sell_from_showcase(db_session, croissant.id, 3)

    assert sale.quantity_sold == 3
    assert sale.total_amount == Decimal("3.60")
    assert sale.product_name == "Croissant beurre"
    assert croissant.showcase_quantity == 7
    # le stock de réserve n'est pas touché
    assert croissant.stock_quantity == 30


def test_sell_more_than_showcase_is_rejected(db_session, croissant):
    with pytest.raises(InsufficientStock) as exc:
        products.sell_from_showcase(db_session, croissant.id, 11)
    assert exc.value.unit == "pcs"

    db_session.refresh(croissant)
    assert croissant.showcase_quantity == 10
    assert db_session.scalar(select(func.count()).select_from(Sale)) == 0


@pytest.mark.parametrize("quantity", [0, -2, True, 1.5])
def test_sell_rejects_bad_quantity(db_session, croissant, quantity):
    with pytest.raises(InvalidQuantity):
        products.sell_from_showcase(db_session, croissant.id, quantity)


def test_delete_product_cascades_to_sales(db_session, croissant):
    products.sell_from_showcase(db_session, croissant.id, 1)
    product_id = croissant.id

    products.delete_product(db_session, product_id)

    assert db_session.scalar(select(func.count()).select_from(Sale).where(Sale.product_id == product_id)) == 0
    with pytest.raises(NotFound):
        products.get_product(db_session, product_id)


def test_list_products_and_sales(db_session, croissant):
    products.create_product(db_session, name="Baguette", type=ProductType.pain, price="0.90", showcase_quantity=50)
    products.sell_from_showcase(db_session, croissant.id, 2)

    page = products.list_products(db_session)
    assert [p.name for p in page.items] == ["Baguette", "Croissant beurre"]

    assert products.list_products(db_session, search="bag").total == 1

    sales = products.list_sales(db_session)
    assert sales.total == 1
    assert sales.items[0].product_id == croissant.id


def test_daily_sales_summary(db_session, croissant):
    bread = products.create_product(db_session, name="Baguette", type="pain", price="0.90", showcase_quantity=50)
    products.sell_from_showcase(db_session, croissant.id, 2)
    products.sell_from_showcase(db_session, croissant.id, 3)
    products.sell_from_showcase(db_session, bread.id, 10)

    today = datetime.now(timezone.utc).date()
    rows = products.daily_sales_summary(db_session)

    assert [(r.product_name, r.day, r.total_quantity, r.total_amount) for r in rows] == [
        ("Baguette", today, 10, Decimal("9.00")),
        ("Croissant beurre", today, 5, Decimal("6.00")),
    ]
    assert rows[1].product_type is ProductType.croissant
