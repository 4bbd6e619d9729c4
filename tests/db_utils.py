from __future__ import annotations

import os
import uuid
from collections.abc import Callable
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url


def sqlite_database_url(directory: Path, name: str = "joyeria.db") -> str:
    return f"sqlite+pysqlite:///{directory / name}"


def migrate(database_url: str) -> None:
    """Upgrades `database_url` to head; env.py also reads DATABASE_URL."""
    os.environ["DATABASE_URL"] = database_url
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


def _admin_engine(base_url):
    return create_engine(base_url.set(database="postgres"), isolation_level="AUTOCOMMIT", future=True)


def create_postgres_test_database(base_url: str) -> tuple[str, Callable[[], None]]:
    """Creates a throwaway database next to `base_url` and returns its URL with a drop callback."""
    url = make_url(base_url)
    db_name = f"joyeria_test_{uuid.uuid4().hex[:16]}"

    engine = _admin_engine(url)
    with engine.connect() as conn:
        conn.execute(text(f'CREATE DATABASE "{db_name}"'))
    engine.dispose()

    def drop() -> None:
        drop_engine = _admin_engine(url)
        with drop_engine.connect() as conn:
            conn.execute(
                text("SELECT pg_terminate_backend(pid) FROM pg_stat_activity WHERE datname = :db_name"),
                {"db_name": db_name},
            )
            conn.execute(text(f'DROP DATABASE IF EXISTS "{db_name}"'))
        drop_engine.dispose()

    return url.set(database=db_name).render_as_string(hide_password=False), drop
