from __future__ import annotations

import uuid

from app.joyeria.core.security import get_password_hash
from app.joyeria.db.models import Client, Product, User
from app.joyeria.db.seed import run_seed

PASSWORD = "Pass1234!"


def login(client, username: str, password: str = PASSWORD) -> str:
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def auth(token: str, idempotency_key: str | None = None) -> dict:
    headers = {"Authorization": f"Bearer {token}"}
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key
    return headers


def create_user(db_session, *, suffix: str, role: str = "dependiente", is_active: bool = True) -> User:
    user = User(
        id=uuid.uuid4(),
        username=f"user-{suffix}",
        full_name=f"User {suffix}",
        hashed_password=get_password_hash(PASSWORD),
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


def create_admin(db_session, *, suffix: str) -> User:
    return create_user(db_session, suffix=suffix, role="administrador")


def clerk_token(client, db_session, suffix: str = "clerk") -> str:
    user = create_user(db_session, suffix=suffix)
    return login(client, user.username)


def admin_token(client, db_session, suffix: str = "admin") -> str:
    user = create_admin(db_session, suffix=suffix)
    return login(client, user.username)


def seed_defaults(db_session):
    return run_seed(db_session)


def create_product(
    db_session,
    *,
    codigo: str,
    stock: int,
    precio: float = 100.0,
    nombre: str | None = None,
) -> Product:
    product = Product(
        id=uuid.uuid4(),
        codigo=codigo,
        nombre=nombre or f"Joya {codigo}",
        categoria="Anillos",
        precio_venta=precio,
        stock_actual=stock,
        stock_minimo=0,
        estado="Activo",
    )
    db_session.add(product)
    db_session.commit()
    return product


def create_client(db_session, *, nombre: str = "Maria Rojas", cedula: str | None = None) -> Client:
    client = Client(id=uuid.uuid4(), nombre=nombre, cedula=cedula or uuid.uuid4().hex[:12])
    db_session.add(client)
    db_session.commit()
    return client


def sale_item(product, cantidad: int, precio_unitario) -> dict:
    return {"id_joya": str(product.id), "cantidad": cantidad, "precio_unitario": str(precio_unitario)}


def sale_payload(items: list[dict], metodo_pago: str = "Efectivo", **extra) -> dict:
    payload = {"items": items, "metodo_pago": metodo_pago}
    payload.update({key: str(value) if isinstance(value, (int, float)) else value for key, value in extra.items()})
    return payload


def create_sale(client, token: str, payload: dict, idempotency_key: str | None = None) -> dict:
    response = client.post("/ventas", headers=auth(token, idempotency_key), json=payload)
    assert response.status_code == 201, response.json()
    return response.json()


def current_stock(db_session, product) -> int:
    db_session.expire_all()
    return db_session.get(Product, product.id).stock_actual
