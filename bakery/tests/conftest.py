import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from bakery.app.api.deps import get_db
from bakery.app.db.base import Base
from bakery.app.db.models import models_v1  # noqa: F401  (enregistre les tables)
from bakery.app.db.session import create_db_engine, make_session_factory
from bakery.app.main import create_app


@pytest.fixture(scope="function")
def engine():
    """
    Engine SQLite en mémoire, neuf pour chaque test.

    StaticPool : une seule connexion, donc une seule base partagée par
    toutes les sessions du test. Les FK (CASCADE) sont actives.
    """
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    session = make_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    # pas de `with TestClient(...)` : le lifespan (engine réel) n'est pas lancé
    app = create_app()

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    return TestClient(app)
