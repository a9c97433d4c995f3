from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    BigInteger,
    DateTime,
    ForeignKey,
    Numeric,
    Enum,
    Index,
    CheckConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bakery.app.db.base import Base
from bakery.app.db.models.core_types import ProductType, Unit

# SQLite n'auto-incrémente que INTEGER PRIMARY KEY
PK = BigInteger().with_variant(Integer, "sqlite")

KG = Numeric(14, 3)
MONEY = Numeric(12, 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- RAW MATERIALS ----------
class Material(Base):
    __tablename__ = "materials"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # toujours en kg ; `unit` ne sert qu'à la saisie / l'affichage
    current_quantity_kg: Mapped[Decimal] = mapped_column(KG, default=Decimal("0"), nullable=False)
    minimum_quantity_kg: Mapped[Decimal] = mapped_column(KG, default=Decimal("0"), nullable=False)
    unit: Mapped[Unit] = mapped_column(Enum(Unit, name="material_unit"), default=Unit.kg, nullable=False)

    supplier_last_name: Mapped[str | None] = mapped_column(String(120))
    supplier_first_name: Mapped[str | None] = mapped_column(String(120))
    supplier_email: Mapped[str | None] = mapped_column(String(255))
    supplier_phone: Mapped[str | None] = mapped_column(String(32))

    consumptions: Mapped[list["ConsumptionEntry"]] = relationship(
        back_populates="material",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("current_quantity_kg >= 0", name="ck_material_current_nonneg"),
        CheckConstraint("minimum_quantity_kg >= 0", name="ck_material_minimum_nonneg"),
    )

    @property
    def is_below_minimum(self) -> bool:
        return self.current_quantity_kg <= self.minimum_quantity_kg


Index("uq_materials_name_lower", func.lower(Material.name), unique=True)


class ConsumptionEntry(Base):
    __tablename__ = "consumption_entries"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity_kg: Mapped[Decimal] = mapped_column(KG, nullable=False)
    consumed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    material: Mapped[Material] = relationship(back_populates="consumptions")

    __table_args__ = (
        CheckConstraint("quantity_kg > 0", name="ck_consumption_qty_pos"),
        Index("ix_consumption_material_time", "material_id", "consumed_at"),
    )

    @property
    def material_name(self) -> str:
        return self.material.name


# ---------- FINISHED PRODUCTS / POINT OF SALE ----------
class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[ProductType] = mapped_column(Enum(ProductType, name="product_type"), nullable=False)
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    showcase_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    sales: Mapped[list["Sale"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_product_price_pos"),
        CheckConstraint("stock_quantity >= 0", name="ck_product_stock_nonneg"),
        CheckConstraint("showcase_quantity >= 0", name="ck_product_showcase_nonneg"),
    )


Index("uq_products_name_lower", func.lower(Product.name), unique=True)


class Sale(Base):
    __tablename__ = "sales"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity_sold: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    sold_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    product: Mapped[Product] = relationship(back_populates="sales")

    __table_args__ = (
        CheckConstraint("quantity_sold > 0", name="ck_sale_qty_pos"),
        Index("ix_sales_product_time", "product_id", "sold_at"),
    )

    @property
    def product_name(self) -> str:
        return self.product.name
