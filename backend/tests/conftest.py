import os

# Must be set before imageform builds its engine
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from imageform import models  # noqa: F401  (registers the tables)
from imageform.database import Base, build_engine, get_db
from imageform.main import create_app
from imageform.services.repository import SubmissionRepository
from imageform.services.storage import get_image_store
from tests.fixtures.fake_store import FakeImageStore


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def repository(db_session):
    return SubmissionRepository(db_session)


@pytest.fixture
def store():
    return FakeImageStore()


@pytest.fixture
def app(session_factory, store):
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_store] = lambda: store
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
