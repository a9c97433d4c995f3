from fastapi import APIRouter

from bakery.app.api.v1.endpoints.health import router as health_router
from bakery.app.api.v1.endpoints.materials import router as materials_router
from bakery.app.api.v1.endpoints.consumptions import router as consumptions_router
from bakery.app.api.v1.endpoints.products import router as products_router
from bakery.app.api.v1.endpoints.sales import router as sales_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(materials_router, tags=["materials"])
router.include_router(consumptions_router, tags=["consumptions"])
router.include_router(products_router, tags=["products"])
router.include_router(sales_router, tags=["sales"])
