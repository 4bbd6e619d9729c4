from pathlib import Path

from sqlalchemy import create_engine, func, inspect, select
from sqlalchemy.orm import sessionmaker

from app.joyeria.db.models import User
from app.joyeria.db.seed import run_seed
from tests.db_utils import migrate, sqlite_database_url


def test_migrations_apply(tmp_path: Path):
    database_url = sqlite_database_url(tmp_path, "migrations.db")
    migrate(database_url)

    engine = create_engine(database_url, future=True)
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())

    assert {
        "usuarios",
        "joyas",
        "clientes",
        "ventas_dia",
        "items_venta_dia",
        "ventas",
        "items_venta",
        "movimientos_inventario",
        "cuentas_por_cobrar",
        "movimientos_cuenta",
        "abonos",
        "ingresos_extras",
        "devoluciones",
        "cierres_caja",
        "idempotency_records",
        "audit_events",
    } <= tables

    indexes = {index["name"]: index for index in inspector.get_indexes("cuentas_por_cobrar")}
    assert indexes["uq_cuentas_por_cobrar_pendiente_cliente"]["unique"]
    engine.dispose()


def test_seed_is_idempotent(tmp_path: Path):
    database_url = sqlite_database_url(tmp_path, "seed.db")
    migrate(database_url)

    engine = create_engine(database_url, future=True)
    SessionLocal = sessionmaker(bind=engine, future=True)

    with SessionLocal() as db:
        run_seed(db)
        users_count = db.scalar(select(func.count()).select_from(User))
        run_seed(db)
        users_count_after = db.scalar(select(func.count()).select_from(User))

        assert users_count == 1
        assert users_count_after == users_count
        admin = db.execute(select(User)).scalars().one()
        assert admin.role == "administrador"
    engine.dispose()
