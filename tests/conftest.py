import os
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# The application engine is built at import time; point it somewhere disposable.
os.environ.setdefault(
    "SIGNAGE_DATABASE_URL",
    f"sqlite:///{Path(tempfile.mkdtemp()) / 'signage-test.db'}",
)

from signage_fleet.db import Base  # noqa: E402
from signage_fleet.models.device import Player  # noqa: E402,F401
from signage_fleet.services.device_store import DeviceStore  # noqa: E402


@pytest.fixture(autouse=True)
def _multi_tenant_edition(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SIGNAGE_PLATFORM_EDITION", "core")


@pytest.fixture
def engine(tmp_path: Path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'players.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db) -> DeviceStore:
    return DeviceStore(db)


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from signage_fleet.api.device import get_db
    from signage_fleet.main import app

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
