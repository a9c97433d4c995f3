from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bakery.app.app_logging import get_logger
from bakery.services.errors import (
    BakeryError,
    DuplicateName,
    InsufficientStock,
    NotFound,
)

logger = get_logger(__name__)

STATUS_BY_ERROR: dict[type[BakeryError], int] = {
    NotFound: 404,
    DuplicateName: 409,
    InsufficientStock: 400,
}


def status_for(exc: BakeryError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    # InvalidUnit, InvalidQuantity, InvalidName, ... : erreurs de saisie
    return 400


async def bakery_error_handler(request: Request, exc: BakeryError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(
        "request_rejected",
        extra={"path": request.url.path, "error": exc.code, "status": status_code},
    )
    return JSONResponse(status_code=status_code, content={"error": exc.code, "detail": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BakeryError, bakery_error_handler)
