"""
Produits finis et ventes en vitrine.

Une vente décrémente la vitrine et ajoute une ligne `sales` dans la même
transaction, comme une consommation de matière (cf. consumption.py).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from bakery.app.app_logging import get_logger
from bakery.app.db.models.core_types import ProductType
from bakery.app.db.models.models_v1 import Product, Sale, utcnow
from bakery.app.db.session import transaction
from bakery.app.schemas.product import ProductPatch
from bakery.services.errors import (
    DuplicateName,
    InsufficientStock,
    InvalidName,
    InvalidPrice,
    InvalidProductType,
    InvalidQuantity,
    NotFound,
)
from bakery.services.pagination import DEFAULT_LIMIT, Page, check_window, count_rows
from bakery.services.reporting import as_date
from bakery.services.units import parse_quantity

logger = get_logger(__name__)

PRICE_STEP = Decimal("0.01")


@dataclass(frozen=True)
class DailySales:
    product_id: int
    product_name: str
    product_type: ProductType
    day: date
    total_quantity: int
    total_amount: Decimal


# ---------- Helpers ----------
def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidName(name)
    return cleaned


def _parse_type(value: ProductType | str) -> ProductType:
    if isinstance(value, ProductType):
        return value
    try:
        return ProductType(str(value).strip().lower())
    except ValueError:
        raise InvalidProductType(value) from None


def _parse_price(value: Decimal | int | float | str) -> Decimal:
    try:
        price = parse_quantity(value).quantize(PRICE_STEP)
    except InvalidQuantity:
        raise InvalidPrice(value) from None
    if price <= 0:
        raise InvalidPrice(value)
    return price


def _parse_count(value: int, *, positive: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantity(value, "must be an integer")
    if positive and value <= 0:
        raise InvalidQuantity(value)
    if value < 0:
        raise InvalidQuantity(value, "must be greater than or equal to 0")
    return value


def _ensure_name_available(db: Session, name: str, *, exclude_id: int | None = None) -> None:
    stmt = select(Product.id).where(func.lower(Product.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    if db.execute(stmt).first() is not None:
        raise DuplicateName("product", name)


def _flush_or_duplicate(db: Session, name: str) -> None:
    try:
        db.flush()
    except IntegrityError:
        raise DuplicateName("product", name) from None


def _lock_product(db: Session, product_id: int) -> Product:
    product = (
        db.execute(
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        .scalar_one_or_none()
    )
    if not product:
        raise NotFound("product", product_id)
    return product


# ---------- Products ----------
def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("product", product_id)
    return product


def list_products(
    db: Session,
    *,
    search: str = "",
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> Page[Product]:
    check_window(limit, offset)

    stmt = select(Product)
    search = (search or "").strip()
    if search:
        stmt = stmt.where(func.lower(Product.name).contains(search.lower(), autoescape=True))

    total = count_rows(db, stmt)
    rows = db.execute(stmt.order_by(Product.name.asc()).limit(limit).offset(offset)).scalars().all()
    return Page(items=rows, total=total, limit=limit, offset=offset)


def create_product(
    db: Session,
    *,
    name: str,
    type: ProductType | str,
    price: Decimal | int | float | str,
    stock_quantity: int = 0,
    showcase_quantity: int = 0,
) -> Product:
    name = _clean_name(name)
    product_type = _parse_type(type)
    price = _parse_price(price)
    stock_quantity = _parse_count(stock_quantity)
    showcase_quantity = _parse_count(showcase_quantity)

    with transaction(db):
        _ensure_name_available(db, name)

        product = Product(
            name=name,
            type=product_type,
            price=price,
            stock_quantity=stock_quantity,
            showcase_quantity=showcase_quantity,
        )
        db.add(product)
        _flush_or_duplicate(db, name)

        logger.info(
            "product_created",
            extra={"product_id": product.id, "name": name, "type": product_type.value, "price": price},
        )

    return product


def update_product(db: Session, product_id: int, patch: ProductPatch) -> Product:
    changes = patch.model_dump(exclude_unset=True)

    with transaction(db):
        product = _lock_product(db, product_id)

        if "name" in changes:
            name = _clean_name(changes["name"])
            if name.lower() != product.name.lower():
                _ensure_name_available(db, name, exclude_id=product.id)
            product.name = name
        if "type" in changes:
            product.type = _parse_type(changes["type"])
        if "price" in changes:
            product.price = _parse_price(changes["price"])
        if "stock_quantity" in changes:
            product.stock_quantity = _parse_count(changes["stock_quantity"])
        if "showcase_quantity" in changes:
            product.showcase_quantity = _parse_count(changes["showcase_quantity"])

        _flush_or_duplicate(db, product.name)

        logger.info("product_updated", extra={"product_id": product.id, "fields": sorted(changes)})

    return product


def delete_product(db: Session, product_id: int) -> None:
    # ventes supprimées par ON DELETE CASCADE
    with transaction(db):
        product = _lock_product(db, product_id)
        db.delete(product)
        db.flush()

        logger.info("product_deleted", extra={"product_id": product_id})


# ---------- Sales ----------
def sell_from_showcase(db: Session, product_id: int, quantity: int) -> Sale:
    """
    Vend `quantity` pièces prises dans la vitrine.

    Vitrine insuffisante -> InsufficientStock, rien n'est écrit.
    """
    quantity = _parse_count(quantity, positive=True)

    with transaction(db):
        product = _lock_product(db, product_id)

        if product.showcase_quantity < quantity:
            raise InsufficientStock("product", product.id, product.showcase_quantity, quantity, unit="pcs")

        product.showcase_quantity -= quantity
        sale = Sale(
            product_id=product.id,
            quantity_sold=quantity,
            total_amount=(product.price * quantity).quantize(PRICE_STEP),
            sold_at=utcnow(),
        )
        db.add(sale)
        db.flush()

        logger.info(
            "product_sold",
            extra={
                "sale_id": sale.id,
                "product_id": product.id,
                "quantity": quantity,
                "total_amount": sale.total_amount,
                "showcase_left": product.showcase_quantity,
            },
        )

    return sale


def list_sales(db: Session, *, limit: int = DEFAULT_LIMIT, offset: int = 0) -> Page[Sale]:
    check_window(limit, offset)

    stmt = select(Sale)
    total = count_rows(db, stmt)
    rows = (
        db.execute(
            stmt.options(joinedload(Sale.product))
            .order_by(Sale.sold_at.desc(), Sale.id.desc())
            .limit(limit)
            .offset(offset)
        )
        .scalars()
        .all()
    )
    return Page(items=rows, total=total, limit=limit, offset=offset)


def daily_sales_summary(db: Session) -> list[DailySales]:
    """Quantités et montants vendus par (produit, jour)."""
    day = func.date(Sale.sold_at)

    rows = db.execute(
        select(
            Product.id,
            Product.name,
            Product.type,
            day.label("day"),
            func.sum(Sale.quantity_sold).label("total_quantity"),
            func.sum(Sale.total_amount).label("total_amount"),
        )
        .select_from(Sale)
        .join(Product, Product.id == Sale.product_id)
        .group_by(Product.id, Product.name, Product.type, day)
        .order_by(day.desc(), Product.name)
    ).all()

    return [
        DailySales(
            product_id=int(product_id),
            product_name=name,
            product_type=product_type,
            day=as_date(row_day),
            total_quantity=int(quantity),
            total_amount=Decimal(str(amount)).quantize(PRICE_STEP),
        )
        for product_id, name, product_type, row_day, quantity, amount in rows
    ]
