from fastapi.testclient import TestClient

from app.main import app
from app.core.config import settings
from app.models.user import User


def test_admin_route_forbidden_without_admin_flag(db_session):
    u = User(email="user@local.test", is_admin=False)
    db_session.add(u)
    db_session.commit()

    client = TestClient(app)
    r = client.get("/admin/forms", headers={"X-User-Email": "user@local.test"})
    assert r.status_code == 403


def test_admin_route_ok_with_admin_flag(db_session):
    u = User(email="admin2@local.test", is_admin=True)
    db_session.add(u)
    db_session.commit()

    client = TestClient(app)
    r = client.get("/admin/forms", headers={"X-User-Email": "admin2@local.test"})
    assert r.status_code == 200


def test_inactive_admin_is_rejected(db_session):
    u = User(email="gone@local.test", is_admin=True, is_active=False)
    db_session.add(u)
    db_session.commit()

    client = TestClient(app)
    r = client.get("/admin/forms", headers={"X-User-Email": "gone@local.test"})
    assert r.status_code == 401


def test_admin_token_disabled_when_unset(db_session, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_TOKEN", None)

    client = TestClient(app)
    r = client.get("/admin/forms", headers={"X-Admin-Token": ""})
    assert r.status_code == 401


def test_admin_token_alongside_member_header(db_session, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_TOKEN", "s3cret")
    u = User(email="member@local.test", is_admin=False)
    db_session.add(u)
    db_session.commit()

    client = TestClient(app)
    r = client.get(
        "/admin/forms",
        headers={"X-User-Email": "member@local.test", "X-Admin-Token": "s3cret"},
    )
    assert r.status_code == 200


def test_public_routes_need_no_user(db_session):
    client = TestClient(app)
    assert client.get("/scopes/registration/fields").status_code == 200
