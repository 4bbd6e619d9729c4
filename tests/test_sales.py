from datetime import datetime
from decimal import Decimal

from sqlalchemy import select

from app.joyeria.db.models import (
    AccountMovement,
    DaySale,
    InventoryMovement,
    ReceivableAccount,
    Sale,
)
from tests.pos_helpers import (
    auth,
    clerk_token,
    create_client,
    create_product,
    create_sale,
    current_stock,
    sale_item,
    sale_payload,
)


def _movements(db_session, product):
    db_session.expire_all()
    return (
        db_session.execute(select(InventoryMovement).where(InventoryMovement.id_joya == product.id))
        .scalars()
        .all()
    )


def test_cash_sale_returns_change_and_decrements_stock(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-001", stock=10, precio=150000)

    body = create_sale(
        client,
        token,
        sale_payload([sale_item(product, 1, 150000)], "Efectivo", efectivo_recibido=200000),
    )

    assert Decimal(body["total"]) == Decimal("150000")
    assert Decimal(body["cambio"]) == Decimal("50000")
    assert body["tipo_venta"] == "Contado"
    assert body["id_cuenta_por_cobrar"] is None
    assert current_stock(db_session, product) == 9

    movements = _movements(db_session, product)
    assert len(movements) == 1
    assert movements[0].tipo_movimiento == "Salida"
    assert movements[0].stock_antes == 10
    assert movements[0].stock_despues == 9
    assert movements[0].motivo == f"Venta #{body['id']}"


def test_store_day_scenario(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-002", stock=10, precio=150000)
    customer = create_client(db_session)
    line = [sale_item(product, 1, 150000)]

    cash = create_sale(client, token, sale_payload(line, "Efectivo", efectivo_recibido=200000))
    assert Decimal(cash["cambio"]) == Decimal("50000")
    assert current_stock(db_session, product) == 9

    create_sale(client, token, sale_payload(line, "Tarjeta"))
    assert current_stock(db_session, product) == 8

    transfer = create_sale(client, token, sale_payload(line, "Transferencia", descuento=10000))
    assert Decimal(transfer["total"]) == Decimal("140000")

    mixed = create_sale(
        client,
        token,
        sale_payload(line, "Mixto", monto_efectivo=100000, monto_tarjeta=50000),
    )
    assert Decimal(mixed["total"]) == Decimal("150000")

    credit = create_sale(
        client,
        token,
        sale_payload([sale_item(product, 2, 150000)], "Credito", id_cliente=str(customer.id)),
    )
    assert credit["tipo_venta"] == "Credito"
    assert credit["cuenta_consolidada"] is False

    db_session.expire_all()
    account = db_session.get(ReceivableAccount, credit["id_cuenta_por_cobrar"])
    assert Decimal(str(account.monto_total)) == Decimal("300000")
    assert Decimal(str(account.saldo_pendiente)) == Decimal("300000")
    assert account.estado == "Pendiente"

    assert current_stock(db_session, product) == 4
    movements = _movements(db_session, product)
    assert len(movements) == 5
    assert sum(movement.cantidad for movement in movements) == 6
    assert all(movement.tipo_movimiento == "Salida" for movement in movements)
    assert all(movement.stock_despues >= 0 for movement in movements)

    day_rows = db_session.execute(select(DaySale)).scalars().all()
    history_rows = db_session.execute(select(Sale)).scalars().all()
    assert len(day_rows) == 4
    assert len(history_rows) == 1
    assert history_rows[0].tipo_venta == "Credito"


def test_credit_marker_on_either_field_makes_a_credit_sale(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-003", stock=5, precio=1000)
    customer = create_client(db_session)

    body = create_sale(
        client,
        token,
        sale_payload([sale_item(product, 1, 1000)], "Efectivo", tipo_venta="Credito", id_cliente=str(customer.id)),
    )

    assert body["tipo_venta"] == "Credito"
    assert body["metodo_pago"] == "Credito"
    assert body["id_cuenta_por_cobrar"]


def test_credit_sales_consolidate_into_one_pending_account(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-004", stock=10, precio=1000)
    customer = create_client(db_session)

    first = create_sale(
        client, token, sale_payload([sale_item(product, 1, 1000)], "Credito", id_cliente=str(customer.id))
    )
    second = create_sale(
        client, token, sale_payload([sale_item(product, 2, 1000)], "Credito", id_cliente=str(customer.id))
    )
    third = create_sale(
        client, token, sale_payload([sale_item(product, 1, 500)], "Credito", id_cliente=str(customer.id))
    )

    assert first["id_cuenta_por_cobrar"] == second["id_cuenta_por_cobrar"] == third["id_cuenta_por_cobrar"]
    assert second["cuenta_consolidada"] is True

    db_session.expire_all()
    accounts = (
        db_session.execute(select(ReceivableAccount).where(ReceivableAccount.id_cliente == customer.id))
        .scalars()
        .all()
    )
    assert len(accounts) == 1
    assert Decimal(str(accounts[0].monto_total)) == Decimal("3500")
    movements = (
        db_session.execute(select(AccountMovement).where(AccountMovement.id_cuenta == accounts[0].id))
        .scalars()
        .all()
    )
    assert len(movements) == 3
    assert {movement.tipo for movement in movements} == {"credit_sale"}


def test_credit_sale_requires_client(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-005", stock=5)

    response = client.post("/ventas", headers=auth(token), json=sale_payload([sale_item(product, 1, 100)], "Credito"))

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert current_stock(db_session, product) == 5


def test_unknown_client_is_not_found(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-006", stock=5)

    response = client.post(
        "/ventas",
        headers=auth(token),
        json=sale_payload(
            [sale_item(product, 1, 100)], "Credito", id_cliente="7b0e0f7a-1111-4222-8333-444455556666"
        ),
    )

    assert response.status_code == 404
    assert response.json()["code"] == "CLIENT_NOT_FOUND"


def test_insufficient_stock_writes_nothing(client, db_session):
    token = clerk_token(client, db_session)
    plenty = create_product(db_session, codigo="ANI-007", stock=5)
    scarce = create_product(db_session, codigo="ANI-008", stock=1, nombre="Collar perla")

    response = client.post(
        "/ventas",
        headers=auth(token),
        json=sale_payload([sale_item(plenty, 1, 100), sale_item(scarce, 2, 100)], "Tarjeta"),
    )

    assert response.status_code == 400
    payload = response.json()
    assert payload["code"] == "INSUFFICIENT_STOCK"
    assert payload["details"]["nombre"] == "Collar perla"
    assert payload["details"]["stock_disponible"] == 1
    assert current_stock(db_session, plenty) == 5
    assert current_stock(db_session, scarce) == 1
    assert _movements(db_session, plenty) == []
    assert db_session.execute(select(DaySale)).scalars().all() == []


def test_repeated_lines_are_checked_against_combined_quantity(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-009", stock=2)

    response = client.post(
        "/ventas",
        headers=auth(token),
        json=sale_payload([sale_item(product, 2, 100), sale_item(product, 1, 100)], "Tarjeta"),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INSUFFICIENT_STOCK"
    assert current_stock(db_session, product) == 2


def test_insufficient_cash_is_rejected(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-010", stock=5)

    response = client.post(
        "/ventas",
        headers=auth(token),
        json=sale_payload([sale_item(product, 1, 150000)], "Efectivo", efectivo_recibido=100000),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INSUFFICIENT_CASH"
    assert current_stock(db_session, product) == 5


def test_mixed_tender_must_match_total(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-011", stock=5)

    response = client.post(
        "/ventas",
        headers=auth(token),
        json=sale_payload([sale_item(product, 1, 150000)], "Mixto", monto_efectivo=100000, monto_tarjeta=40000),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_TENDER"
    assert current_stock(db_session, product) == 5


def test_mixed_tender_within_one_cent_is_accepted(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-012", stock=5)

    body = create_sale(
        client,
        token,
        sale_payload([sale_item(product, 1, "100.00")], "Mixto", monto_efectivo="60.00", monto_tarjeta="39.99"),
    )

    assert Decimal(body["total"]) == Decimal("100.00")


def test_mixed_tender_change_covers_cash_component_only(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-013", stock=5)

    body = create_sale(
        client,
        token,
        sale_payload(
            [sale_item(product, 1, 150000)],
            "Mixto",
            monto_efectivo=100000,
            monto_transferencia=50000,
            efectivo_recibido=120000,
        ),
    )
    assert Decimal(body["cambio"]) == Decimal("20000")

    response = client.post(
        "/ventas",
        headers=auth(token),
        json=sale_payload(
            [sale_item(product, 1, 150000)],
            "Mixto",
            monto_efectivo=100000,
            monto_transferencia=50000,
            efectivo_recibido=90000,
        ),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INSUFFICIENT_CASH"


def test_discount_above_subtotal_is_rejected(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-014", stock=5)

    response = client.post(
        "/ventas",
        headers=auth(token),
        json=sale_payload([sale_item(product, 1, 100)], "Tarjeta", descuento=150),
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_empty_items_is_a_validation_error(client, db_session):
    token = clerk_token(client, db_session)

    response = client.post("/ventas", headers=auth(token), json={"items": [], "metodo_pago": "Efectivo"})

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_unknown_tender_is_a_validation_error(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-015", stock=5)

    response = client.post("/ventas", headers=auth(token), json=sale_payload([sale_item(product, 1, 100)], "Bitcoin"))

    assert response.status_code == 422


def test_unknown_product_is_not_found(client, db_session):
    token = clerk_token(client, db_session)

    response = client.post(
        "/ventas",
        headers=auth(token),
        json={
            "items": [{"id_joya": "7b0e0f7a-1111-4222-8333-444455556666", "cantidad": 1, "precio_unitario": "10"}],
            "metodo_pago": "Tarjeta",
        },
    )

    assert response.status_code == 404
    assert response.json()["code"] == "PRODUCT_NOT_FOUND"


def test_line_without_product_touches_no_stock(client, db_session):
    token = clerk_token(client, db_session)

    body = create_sale(
        client,
        token,
        {
            "items": [{"cantidad": 1, "precio_unitario": "2500", "descripcion": "Limpieza de joya"}],
            "metodo_pago": "Efectivo",
        },
    )

    detail = client.get(f"/ventas/{body['id']}", headers=auth(token)).json()
    assert detail["items"][0]["id_joya"] is None
    assert detail["items"][0]["descripcion_item"] == "Limpieza de joya"
    db_session.expire_all()
    assert db_session.execute(select(InventoryMovement)).scalars().all() == []


def test_get_sale_from_either_partition(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-016", stock=5, nombre="Anillo oro")
    customer = create_client(db_session)

    day = create_sale(client, token, sale_payload([sale_item(product, 1, 100)], "Tarjeta"))
    credit = create_sale(
        client, token, sale_payload([sale_item(product, 1, 100)], "Credito", id_cliente=str(customer.id))
    )

    day_detail = client.get(f"/ventas/{day['id']}", headers=auth(token))
    assert day_detail.status_code == 200
    assert day_detail.json()["es_venta_dia"] is True
    assert day_detail.json()["items"][0]["codigo_joya"] == "ANI-016"
    assert day_detail.json()["items"][0]["nombre_joya"] == "Anillo oro"

    credit_detail = client.get(f"/ventas/{credit['id']}", headers=auth(token))
    assert credit_detail.status_code == 200
    assert credit_detail.json()["es_venta_dia"] is False
    assert credit_detail.json()["id_cliente"] == str(customer.id)

    missing = client.get("/ventas/7b0e0f7a-1111-4222-8333-444455556666", headers=auth(token))
    assert missing.status_code == 404
    assert missing.json()["code"] == "SALE_NOT_FOUND"


def test_list_sales_merges_partitions(client, db_session):
    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="ANI-017", stock=20)
    customer = create_client(db_session)

    for tender in ("Efectivo", "Tarjeta", "Efectivo"):
        create_sale(client, token, sale_payload([sale_item(product, 1, 100)], tender))
    create_sale(client, token, sale_payload([sale_item(product, 1, 100)], "Credito", id_cliente=str(customer.id)))

    response = client.get("/ventas", headers=auth(token))
    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 4
    assert payload["ventas_dia_count"] == 3
    assert payload["ventas_historial_count"] == 1
    timestamps = [datetime.fromisoformat(row["fecha_venta"]) for row in payload["ventas"]]
    assert timestamps == sorted(timestamps, reverse=True)

    cash_only = client.get("/ventas", headers=auth(token), params={"metodo_pago": "Efectivo"}).json()
    assert cash_only["total"] == 2
    assert {row["metodo_pago"] for row in cash_only["ventas"]} == {"Efectivo"}

    credit_only = client.get("/ventas", headers=auth(token), params={"tipo_venta": "Credito"}).json()
    assert credit_only["total"] == 1
    assert credit_only["ventas"][0]["es_venta_dia"] is False

    paged = client.get("/ventas", headers=auth(token), params={"pagina": 2, "por_pagina": 3}).json()
    assert len(paged["ventas"]) == 1
    assert paged["total_paginas"] == 2
