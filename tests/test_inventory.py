from sqlalchemy import select

from app.joyeria.db.models import AuditEvent, InventoryMovement
from tests.pos_helpers import (
    admin_token,
    auth,
    clerk_token,
    create_product,
    create_sale,
    current_stock,
    sale_item,
    sale_payload,
)


def _move(client, token, product, tipo, cantidad, motivo="Conteo fisico", idempotency_key=None):
    return client.post(
        "/movimientos",
        headers=auth(token, idempotency_key),
        json={"id_joya": str(product.id), "tipo_movimiento": tipo, "cantidad": cantidad, "motivo": motivo},
    )


def test_manual_movements_update_stock(client, db_session):
    token = admin_token(client, db_session)
    product = create_product(db_session, codigo="INV-1", stock=5)

    entry = _move(client, token, product, "Entrada", 3, "Reposicion")
    assert entry.status_code == 201
    assert entry.json()["stock_antes"] == 5
    assert entry.json()["stock_despues"] == 8

    out = _move(client, token, product, "Salida", 2, "Merma")
    assert out.status_code == 201
    assert out.json()["stock_despues"] == 6

    adjust = _move(client, token, product, "Ajuste", 0)
    assert adjust.status_code == 201
    assert adjust.json()["stock_antes"] == 6
    assert adjust.json()["stock_despues"] == 0
    assert current_stock(db_session, product) == 0

    events = db_session.execute(select(AuditEvent).where(AuditEvent.action == "inventory.movement")).scalars().all()
    assert len(events) == 3


def test_manual_exit_cannot_go_negative(client, db_session):
    token = admin_token(client, db_session)
    product = create_product(db_session, codigo="INV-2", stock=1)

    response = _move(client, token, product, "Salida", 2)
    assert response.status_code == 400
    assert response.json()["code"] == "INSUFFICIENT_STOCK"
    assert current_stock(db_session, product) == 1
    assert db_session.execute(select(InventoryMovement)).scalars().all() == []


def test_manual_movement_quantity_rules(client, db_session):
    token = admin_token(client, db_session)
    product = create_product(db_session, codigo="INV-3", stock=1)

    assert _move(client, token, product, "Entrada", 0).status_code == 422
    assert _move(client, token, product, "Ajuste", -1).status_code == 422
    assert _move(client, token, product, "Robo", 1).status_code == 422


def test_manual_movement_unknown_product(client, db_session):
    token = admin_token(client, db_session)
    response = client.post(
        "/movimientos",
        headers=auth(token),
        json={
            "id_joya": "7b0e0f7a-1111-4222-8333-444455556666",
            "tipo_movimiento": "Entrada",
            "cantidad": 1,
            "motivo": "Reposicion",
        },
    )
    assert response.status_code == 404
    assert response.json()["code"] == "PRODUCT_NOT_FOUND"


def test_product_and_history_endpoints(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="INV-4", stock=12)
    for _ in range(3):
        create_sale(client, token, sale_payload([sale_item(product, 1, 100)], "Tarjeta"))

    detail = client.get(f"/joyas/{product.id}", headers=auth(token))
    assert detail.status_code == 200
    assert detail.json()["stock_actual"] == 9
    assert detail.json()["codigo"] == "INV-4"

    history = client.get(f"/joyas/{product.id}/movimientos", headers=auth(token), params={"limite": 2})
    assert history.status_code == 200
    rows = history.json()
    assert len(rows) == 2
    assert all(row["tipo_movimiento"] == "Salida" for row in rows)

    missing = client.get("/joyas/7b0e0f7a-1111-4222-8333-444455556666", headers=auth(token))
    assert missing.status_code == 404


def test_movement_listing_filters(client, db_session):
    token = admin_token(client, db_session)
    ring = create_product(db_session, codigo="INV-5", stock=10)
    chain = create_product(db_session, codigo="INV-6", stock=10)
    _move(client, token, ring, "Entrada", 1)
    _move(client, token, ring, "Salida", 1)
    _move(client, token, chain, "Entrada", 4)

    everything = client.get("/movimientos", headers=auth(token)).json()
    assert everything["total"] == 3

    by_product = client.get("/movimientos", headers=auth(token), params={"id_joya": str(ring.id)}).json()
    assert by_product["total"] == 2

    entries = client.get("/movimientos", headers=auth(token), params={"tipo_movimiento": "Entrada"}).json()
    assert entries["total"] == 2
    assert {row["tipo_movimiento"] for row in entries["movimientos"]} == {"Entrada"}

    paged = client.get("/movimientos", headers=auth(token), params={"por_pagina": 2, "pagina": 2}).json()
    assert len(paged["movimientos"]) == 1
    assert paged["total_paginas"] == 2
