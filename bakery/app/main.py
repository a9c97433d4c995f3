from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from bakery.app.api.errors import register_error_handlers
from bakery.app.api.v1.router import router as v1_router
from bakery.app.app_logging import get_logger
from bakery.app.db.session import create_db_engine, make_session_factory

logger = get_logger(__name__)


def create_app(database_url: str | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_db_engine(database_url)
        app.state.engine = engine
        app.state.session_factory = make_session_factory(engine)
        logger.info("app_started", extra={"dialect": engine.dialect.name})
        try:
            yield
        finally:
            engine.dispose()
            logger.info("app_stopped")

    app = FastAPI(title="Bakery Stock", version="0.1.0", lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(v1_router, prefix="/v1")
    return app


app = create_app()
