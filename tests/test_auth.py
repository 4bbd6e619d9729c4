from sqlalchemy import select

from app.joyeria.db.models import AuditEvent
from tests.pos_helpers import PASSWORD, auth, create_admin, create_user, login, seed_defaults


def test_login_and_me(client, db_session):
    user = create_user(db_session, suffix="login")
    token = login(client, user.username)

    response = client.get("/auth/me", headers=auth(token))
    assert response.status_code == 200
    payload = response.json()
    assert payload["username"] == user.username
    assert payload["role"] == "dependiente"
    assert payload["is_active"] is True


def test_seeded_admin_can_login(client, db_session):
    admin = seed_defaults(db_session)
    response = client.post("/auth/login", json={"username": admin.username, "password": "change-me"})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["role"] == "administrador"
    assert body["expires_in"] > 0


def test_invalid_credentials(client, db_session):
    user = create_user(db_session, suffix="bad-pass")
    response = client.post("/auth/login", json={"username": user.username, "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"

    db_session.expire_all()
    failures = db_session.execute(select(AuditEvent).where(AuditEvent.action == "auth.login.failed")).scalars().all()
    assert len(failures) == 1
    assert failures[0].result == "failure"


def test_inactive_user_is_rejected(client, db_session):
    user = create_user(db_session, suffix="inactive", is_active=False)
    response = client.post("/auth/login", json={"username": user.username, "password": PASSWORD})
    assert response.status_code == 403
    assert response.json()["code"] == "USER_INACTIVE"


def test_protected_route_requires_token(client):
    response = client.get("/ventas")
    assert response.status_code == 401


def test_garbage_token_is_invalid(client):
    response = client.get("/ventas", headers=auth("not-a-token"))
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_admin_only_route_rejects_clerk(client, db_session):
    clerk = create_user(db_session, suffix="clerk-archive")
    create_admin(db_session, suffix="boss")
    token = login(client, clerk.username)
    response = client.post(
        "/movimientos",
        headers=auth(token),
        json={
            "id_joya": "00000000-0000-4000-8000-000000000000",
            "tipo_movimiento": "Entrada",
            "cantidad": 1,
            "motivo": "Reposicion",
        },
    )
    assert response.status_code == 403
    assert response.json()["code"] == "PERMISSION_DENIED"


def test_deactivation_applies_to_issued_tokens(client, db_session):
    user = create_user(db_session, suffix="later-inactive")
    token = login(client, user.username)

    user.is_active = False
    db_session.commit()

    response = client.get("/auth/me", headers=auth(token))
    assert response.status_code == 403
    assert response.json()["code"] == "USER_INACTIVE"
