import importlib
import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tests.db_utils import create_postgres_test_database, migrate, sqlite_database_url


def _load_app(database_url: str):
    """Re-imports settings, engine and app so they bind to the per-test database."""
    os.environ["DATABASE_URL"] = database_url
    os.environ["SECRET_KEY"] = "test-secret"
    os.environ["METRICS_ENABLED"] = "true"

    import app.joyeria.core.config as config
    import app.joyeria.db.session as session
    import app.main as main

    for module in (config, session, main):
        importlib.reload(module)
    return main.create_app(), session


@pytest.fixture(autouse=True)
def _reset_metrics():
    from app.joyeria.core.metrics import metrics

    metrics.reset()
    yield


@pytest.fixture()
def database_url(tmp_path: Path):
    configured = os.getenv("DATABASE_URL", "")
    if configured.startswith("postgres"):
        url, drop = create_postgres_test_database(configured)
        yield url
        drop()
        return
    yield sqlite_database_url(tmp_path, "test.db")


@pytest.fixture()
def client(database_url):
    migrate(database_url)
    app, session = _load_app(database_url)
    with TestClient(app) as test_client:
        yield test_client
    session.engine.dispose()


@pytest.fixture()
def db_session(client):
    from app.joyeria.db.session import SessionLocal

    with SessionLocal() as db:
        yield db
