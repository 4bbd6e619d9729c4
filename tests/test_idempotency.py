from sqlalchemy import select

from app.joyeria.db.models import AuditEvent, DaySale, IdempotencyRecord, Payment
from tests.pos_helpers import (
    auth,
    clerk_token,
    create_client,
    create_product,
    current_stock,
    sale_item,
    sale_payload,
)


def test_sale_replay_returns_stored_response(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="IDE-1", stock=5)
    payload = sale_payload([sale_item(product, 1, 100)], "Efectivo", efectivo_recibido=150)

    first = client.post("/ventas", headers=auth(token, "venta-1"), json=payload)
    second = client.post("/ventas", headers=auth(token, "venta-1"), json=payload)

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json() == first.json()
    assert second.headers["X-Idempotency-Result"] == "IDEMPOTENCY_REPLAY"
    assert current_stock(db_session, product) == 4
    assert len(db_session.execute(select(DaySale)).scalars().all()) == 1

    events = db_session.execute(select(AuditEvent).where(AuditEvent.action == "sale.create")).scalars().all()
    assert len(events) == 1


def test_same_key_with_different_payload_conflicts(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="IDE-2", stock=5)

    first = client.post(
        "/ventas", headers=auth(token, "venta-2"), json=sale_payload([sale_item(product, 1, 100)], "Tarjeta")
    )
    assert first.status_code == 201

    second = client.post(
        "/ventas", headers=auth(token, "venta-2"), json=sale_payload([sale_item(product, 2, 100)], "Tarjeta")
    )
    assert second.status_code == 409
    assert second.json()["code"] == "IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD"
    assert current_stock(db_session, product) == 4


def test_failed_request_is_replayed_as_failure(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="IDE-3", stock=1)
    payload = sale_payload([sale_item(product, 2, 100)], "Tarjeta")

    first = client.post("/ventas", headers=auth(token, "venta-3"), json=payload)
    second = client.post("/ventas", headers=auth(token, "venta-3"), json=payload)

    assert first.status_code == 400
    assert second.status_code == 400
    assert second.json()["code"] == "INSUFFICIENT_STOCK"
    assert second.headers["X-Idempotency-Result"] == "IDEMPOTENCY_REPLAY"

    record = db_session.execute(select(IdempotencyRecord)).scalars().one()
    assert record.state == "failed"


def test_payment_replay_does_not_double_apply(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="IDE-4", stock=5)
    customer = create_client(db_session)
    sale = client.post(
        "/ventas",
        headers=auth(token),
        json=sale_payload([sale_item(product, 1, 1000)], "Credito", id_cliente=str(customer.id)),
    ).json()
    account_id = sale["id_cuenta_por_cobrar"]
    body = {"monto": "400", "metodo_pago": "Efectivo"}

    first = client.post(f"/cuentas-por-cobrar/{account_id}/abonos", headers=auth(token, "abono-1"), json=body)
    second = client.post(f"/cuentas-por-cobrar/{account_id}/abonos", headers=auth(token, "abono-1"), json=body)

    assert first.status_code == 201
    assert second.json() == first.json()
    assert len(db_session.execute(select(Payment)).scalars().all()) == 1


def test_close_replay_does_not_report_nothing_to_close(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="IDE-5", stock=5)
    client.post("/ventas", headers=auth(token), json=sale_payload([sale_item(product, 1, 100)], "Efectivo"))

    first = client.post("/cierrecaja/cerrar-caja", headers=auth(token, "cierre-1"))
    second = client.post("/cierrecaja/cerrar-caja", headers=auth(token, "cierre-1"))

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json() == first.json()
