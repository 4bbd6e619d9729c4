from tests.pos_helpers import clerk_token, create_product, create_sale, sale_item, sale_payload


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["trace_id"]


def test_ready(client):
    response = client.get("/ready")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ready"
    assert payload["trace_id"]


def test_trace_id_is_echoed(client):
    response = client.get("/health", headers={"X-Trace-ID": "trace-abc"})
    assert response.headers["X-Trace-ID"] == "trace-abc"
    assert response.json()["trace_id"] == "trace-abc"


def test_unusable_trace_id_is_replaced(client):
    response = client.get("/health", headers={"X-Trace-ID": "x" * 200})
    trace_id = response.headers["X-Trace-ID"]
    assert trace_id != "x" * 200
    assert len(trace_id) == 32


def test_ready_reports_open_register(client, db_session):
    assert client.get("/ready").json()["caja_abierta"] is False

    token = clerk_token(client, db_session)
    product = create_product(db_session, codigo="RDY-1", stock=2)
    create_sale(client, token, sale_payload([sale_item(product, 1, 100)]))

    payload = client.get("/ready").json()
    assert payload["caja_abierta"] is True
    assert payload["ventas_dia"] == 1
