from decimal import Decimal

from tests.pos_helpers import auth, clerk_token


def _register(client, token, monto, tipo="Otros", metodo_pago="Efectivo"):
    return client.post(
        "/ingresos-extras",
        headers=auth(token),
        json={"tipo": tipo, "monto": str(monto), "metodo_pago": metodo_pago, "descripcion": "Reparacion de cadena"},
    )


def test_register_and_list_extra_income(client, db_session):
    token = clerk_token(client, db_session)

    response = _register(client, token, "15000.50", metodo_pago="Transferencia")
    assert response.status_code == 201
    payload = response.json()
    assert Decimal(payload["monto"]) == Decimal("15000.50")
    assert payload["cerrado"] is False

    _register(client, token, 5000, tipo="Prestamo")

    listing = client.get("/ingresos-extras", headers=auth(token)).json()
    assert listing["total"] == 2

    open_rows = client.get("/ingresos-extras", headers=auth(token), params={"cerrado": False}).json()
    assert open_rows["total"] == 2
    closed_rows = client.get("/ingresos-extras", headers=auth(token), params={"cerrado": True}).json()
    assert closed_rows["total"] == 0


def test_extra_income_validation(client, db_session):
    token = clerk_token(client, db_session)

    assert _register(client, token, 0).status_code == 422
    assert _register(client, token, 10, tipo="Regalo").status_code == 422
    assert _register(client, token, 10, metodo_pago="Mixto").status_code == 422
