import time

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.joyeria.core.config import settings
from app.joyeria.core.db_timing import is_timing_request, record_query_time


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        # One file database is shared by the request threadpool.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, echo=False, future=True, **_engine_options(settings.DATABASE_URL))


@event.listens_for(engine, "before_cursor_execute")
def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    if not is_timing_request():
        return
    conn.info.setdefault("query_started_at", []).append(time.perf_counter())


@event.listens_for(engine, "after_cursor_execute")
def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    starts = conn.info.get("query_started_at")
    if not starts:
        return
    record_query_time((time.perf_counter() - starts.pop()) * 1000)


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
