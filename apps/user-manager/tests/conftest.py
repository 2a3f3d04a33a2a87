import os

# Force the in-memory test database before the engine module is imported
os.environ.setdefault("PYTEST_RUNNING", "1")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from user_manager.db import models
from user_manager.db.database import SessionLocal, engine, init_schema
from user_manager.api.main import app


@pytest.fixture(scope="session", autouse=True)
def create_schema_once():
    """Create all tables once per test session (SQLite in-memory lives for the process)."""
    init_schema()
    yield
    try:
        models.Base.metadata.drop_all(bind=engine)
    except Exception:
        pass


@pytest.fixture(autouse=True)
def clean_data():
    """Truncate all tables between tests without dropping metadata (faster)."""
    connection = engine.connect()
    trans = connection.begin()
    for table in reversed(models.Base.metadata.sorted_tables):
        connection.execute(table.delete())
    trans.commit()
    connection.close()
    yield


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def record_factory(db_session: Session):
    def _create(name: str, email: str, status: str = "active"):
        record = models.UserRecord(name=name, email=email, status=status)
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record
    return _create


@pytest.fixture
def client():
    return TestClient(app)
