from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from bakery.app.app_logging import get_logger

logger = get_logger(__name__)

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./data/bakery.sqlite",
)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # sans ce pragma (par connexion), SQLite ignore ON DELETE CASCADE
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str | None = None, **kwargs) -> Engine:
    """
    Construit l'engine pour l'URL donnée (DATABASE_URL par défaut).

    Le cycle de vie appartient à l'appelant (startup/shutdown de l'app,
    fixture de test) : pas d'engine global au niveau module.
    """
    url = url or DATABASE_URL
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(url, pool_pre_ping=True, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Portée transactionnelle autour d'une mutation multi-étapes.

    Commit à la sortie normale, rollback sur n'importe quelle exception
    (qui est re-levée). Aucun état intermédiaire n'est jamais commité.
    """
    try:
        yield db
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.warning(
            "transaction_rolled_back",
            extra={"error": type(exc).__name__, "reason": str(exc)},
        )
        raise
