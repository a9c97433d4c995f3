from __future__ import annotations

from pathlib import Path

from sqlalchemy import func, select

from bakery.app.app_logging import get_logger
from bakery.app.db.base import Base
from bakery.app.db.models.core_types import Unit
from bakery.app.db.models.models_v1 import Material
from bakery.app.db.session import DATABASE_URL, create_db_engine, make_session_factory
from bakery.services.materials import create_material

logger = get_logger(__name__)

# matières de base : (nom, unité de saisie, seuil minimum dans cette unité)
BASE_MATERIALS = (
    ("Farine", Unit.sack50, 2),
    ("Sucre", Unit.sack20, 1),
    ("Beurre", Unit.kg, 5),
)


def run_seed(database_url: str | None = None) -> None:
    url = database_url or DATABASE_URL
    if url.startswith("sqlite:///") and not url.startswith("sqlite:///:memory:"):
        Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(url)
    Base.metadata.create_all(bind=engine)

    db = make_session_factory(engine)()
    try:
        created = []
        for name, unit, minimum in BASE_MATERIALS:
            exists = db.scalar(select(Material.id).where(func.lower(Material.name) == name.lower()))
            if exists:
                continue
            create_material(db, name=name, unit=unit, minimum_quantity=minimum)
            created.append(name)

        logger.info("seed_done", extra={"created": created})
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    run_seed()
