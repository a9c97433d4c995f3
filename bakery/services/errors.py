"""
Exceptions typées du cœur stock.

Chaque erreur porte un `code` lisible par machine et ses données
structurées ; la couche HTTP traduit le code en statut, jamais le message.
Toutes sont récupérables : l'opération concernée est rollback en entier.
"""

from __future__ import annotations

from decimal import Decimal

from bakery.app.db.models.core_types import ProductType, Unit


class BakeryError(Exception):
    code: str = "BAKERY_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidUnit(BakeryError):
    code = "INVALID_UNIT"

    def __init__(self, unit: object):
        self.unit = unit
        valid = ", ".join(u.value for u in Unit)
        super().__init__(f'Unit "{unit}" is not supported (valid units: {valid})')


class InvalidQuantity(BakeryError):
    code = "INVALID_QUANTITY"

    def __init__(self, quantity: object, reason: str = "must be a positive number"):
        self.quantity = quantity
        super().__init__(f"Invalid quantity {quantity!r}: {reason}")


class InvalidName(BakeryError):
    code = "INVALID_NAME"

    def __init__(self, name: object):
        self.name = name
        super().__init__("Name must not be blank")


class InvalidPrice(BakeryError):
    code = "INVALID_PRICE"

    def __init__(self, price: object):
        self.price = price
        super().__init__(f"Invalid price {price!r}: must be greater than 0")


class InvalidProductType(BakeryError):
    code = "INVALID_PRODUCT_TYPE"

    def __init__(self, product_type: object):
        self.product_type = product_type
        valid = ", ".join(t.value for t in ProductType)
        super().__init__(f'Product type "{product_type}" is not supported (valid types: {valid})')


class DuplicateName(BakeryError):
    code = "DUPLICATE_NAME"

    def __init__(self, entity: str, name: str):
        self.entity = entity
        self.name = name
        super().__init__(f'A {entity} named "{name}" already exists')


class NotFound(BakeryError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InsufficientStock(BakeryError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, entity: str, entity_id: int, available: Decimal | int, requested: Decimal | int, unit: str = "kg"):
        self.entity = entity
        self.entity_id = entity_id
        self.available = available
        self.requested = requested
        self.unit = unit
        super().__init__(
            f"Insufficient stock for {entity} {entity_id} "
            f"(available={available} {unit}, requested={requested} {unit})"
        )


class InvalidPagination(BakeryError):
    code = "INVALID_PAGINATION"

    def __init__(self, limit: int, offset: int):
        self.limit = limit
        self.offset = offset
        super().__init__(f"Invalid pagination (limit={limit}, offset={offset})")
