from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from bakery.app.api.deps import get_db
from bakery.app.schemas.common import page_payload
from bakery.app.schemas.material import (
    ConsumptionRead,
    MaterialCreate,
    MaterialPatch,
    MaterialRead,
    StockChange,
)
from bakery.services import consumption, materials, reporting
from bakery.services.pagination import DEFAULT_LIMIT

router = APIRouter(prefix="/materials")


@router.get("")
def list_materials(
    search: str = "",
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    page = materials.list_materials(db, search=search, limit=limit, offset=offset)
    return page_payload(page, MaterialRead)


@router.get("/below-minimum", response_model=list[MaterialRead])
def list_below_minimum(db: Session = Depends(get_db)):
    """Seuil atteint ou dépassé : pas d'alerte ici, seulement la liste."""
    return reporting.materials_below_minimum(db)


@router.post("", response_model=MaterialRead, status_code=201)
def create_material(payload: MaterialCreate, db: Session = Depends(get_db)):
    return materials.create_material(
        db,
        name=payload.name,
        initial_quantity=payload.current_quantity,
        unit=payload.unit,
        minimum_quantity=payload.minimum_quantity,
        supplier=materials.SupplierInfo(
            last_name=payload.supplier_last_name,
            first_name=payload.supplier_first_name,
            email=payload.supplier_email,
            phone=payload.supplier_phone,
        ),
    )


@router.get("/{material_id}", response_model=MaterialRead)
def get_material(material_id: int, db: Session = Depends(get_db)):
    return materials.get_material(db, material_id)


@router.patch("/{material_id}", response_model=MaterialRead)
def update_material(material_id: int, payload: MaterialPatch, db: Session = Depends(get_db)):
    return materials.update_material(db, material_id, payload)


@router.delete("/{material_id}", status_code=204)
def delete_material(material_id: int, db: Session = Depends(get_db)):
    materials.delete_material(db, material_id)
    return Response(status_code=204)


@router.post("/{material_id}/add-stock", response_model=MaterialRead)
def add_stock(material_id: int, payload: StockChange, db: Session = Depends(get_db)):
    return materials.credit(db, material_id, payload.quantity, payload.unit)


@router.post("/{material_id}/consume", response_model=ConsumptionRead, status_code=201)
def consume(material_id: int, payload: StockChange, db: Session = Depends(get_db)):
    return consumption.record_consumption(db, material_id, payload.quantity, payload.unit)
