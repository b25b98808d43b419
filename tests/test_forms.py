from fastapi.testclient import TestClient

from app.main import app
from app.models.form_submission import FormSubmission
from tests.helpers import admin_headers, create_field, create_form, create_user, place


def _create_form(client, headers, **overrides):
    payload = {"slug": "event-signup", "title": "Event signup", "description": "Summer meetup"}
    payload.update(overrides)
    r = client.post("/admin/forms", json=payload, headers=headers)
    assert r.status_code == 201
    return r.json()


def test_list_forms_requires_admin(db_session):
    create_user(db_session, "user@test.com")
    client = TestClient(app)
    r = client.get("/admin/forms", headers={"X-User-Email": "user@test.com"})
    assert r.status_code == 403


def test_list_forms_empty(db_session):
    headers = admin_headers(db_session)
    client = TestClient(app)
    r = client.get("/admin/forms", headers=headers)
    assert r.status_code == 200
    assert r.json() == []


def test_create_and_update_form(db_session):
    headers = admin_headers(db_session)
    client = TestClient(app)
    form = _create_form(client, headers)
    assert form["slug"] == "event-signup"
    assert form["is_published"] is True

    r = client.post("/admin/forms", json={"slug": "event-signup", "title": "Again"}, headers=headers)
    assert r.status_code == 409

    r = client.patch(f"/admin/forms/{form['id']}", json={"is_published": False}, headers=headers)
    assert r.status_code == 200
    assert r.json()["is_published"] is False
    assert r.json()["title"] == "Event signup"


def test_attach_fields_and_render(db_session):
    headers = admin_headers(db_session)
    client = TestClient(app)
    form = _create_form(client, headers)

    r = client.post(
        f"/admin/forms/{form['id']}/fields",
        json={
            "key": "tshirt_size",
            "required": True,
            "help_text": "Unisex sizes",
            "base": {"label": "T-shirt size", "field_type": "select", "options": ["S", "M", "L"]},
        },
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["container"] == f"form:{form['id']}"

    existing = create_field(db_session, "dietary_notes", label="Dietary notes", field_type="textarea")
    r = client.post(
        f"/admin/forms/{form['id']}/fields",
        json={"field_id": str(existing.id)},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["order_index"] == 10

    r = client.get("/forms/event-signup")
    assert r.status_code == 200
    body = r.json()
    assert body["form"] == {"slug": "event-signup", "title": "Event signup", "description": "Summer meetup"}
    assert [f["key"] for f in body["fields"]] == ["tshirt_size", "dietary_notes"]
    assert body["fields"][0]["options"] == ["S", "M", "L"]
    assert body["fields"][0]["help_text"] == "Unisex sizes"
    assert body["fields"][0]["required"] is True


def test_unpublished_form_only_in_preview(db_session):
    headers = admin_headers(db_session)
    client = TestClient(app)
    form = _create_form(client, headers, is_published=False)
    client.post(
        f"/admin/forms/{form['id']}/fields",
        json={"key": "referrer", "visible": False},
        headers=headers,
    )

    assert client.get("/forms/event-signup").status_code == 404

    r = client.get(f"/admin/forms/{form['id']}/preview", headers=headers)
    assert r.status_code == 200
    assert r.json()["form"]["is_published"] is False
    assert [(f["key"], f["visible"]) for f in r.json()["fields"]] == [("referrer", False)]


def test_anonymous_submit_and_list_submissions(db_session):
    headers = admin_headers(db_session)
    form = create_form(db_session, "event-signup")
    place(db_session, create_field(db_session, "tshirt_size"), form=form)
    client = TestClient(app)

    for size in ("S", "M", "L"):
        r = client.post("/forms/event-signup/submit", json={"tshirt_size": size, "spam": "x"})
        assert r.status_code == 200
        assert r.json() == {"ok": True}

    r = client.get(f"/admin/forms/{form.id}/submissions", params={"limit": 2}, headers=headers)
    assert r.status_code == 200
    assert len(r.json()) == 2

    r = client.get(
        f"/admin/forms/{form.id}/submissions",
        params={"limit": 2, "offset": 2, "include_pagination": True},
        headers=headers,
    )
    body = r.json()
    assert body["pagination"] == {"total": 3, "limit": 2, "offset": 2, "has_more": False}
    assert len(body["items"]) == 1
    assert set(body["items"][0]["payload"]) == {"tshirt_size"}


def test_signed_in_submit_updates_profile(db_session):
    form = create_form(db_session, "event-signup")
    place(db_session, create_field(db_session, "tshirt_size"), form=form)
    create_user(db_session, "ann@test.com")
    client = TestClient(app)

    r = client.post(
        "/forms/event-signup/submit",
        json={"tshirt_size": "M"},
        headers={"X-User-Email": "ann@test.com"},
    )
    assert r.status_code == 200

    r = client.get("/profile", headers={"X-User-Email": "ann@test.com"})
    assert r.json()["profile"]["attributes"] == {"tshirt_size": "M"}
    assert db_session.query(FormSubmission).count() == 0


def test_submit_to_inactive_or_unknown_form(db_session):
    create_form(db_session, "closed", is_active=False)
    client = TestClient(app)

    r = client.post("/forms/closed/submit", json={})
    assert r.status_code == 409
    assert r.json()["detail"] == "Form is inactive"

    assert client.post("/forms/nope/submit", json={}).status_code == 404


def test_form_reorder_and_field_removal(db_session):
    headers = admin_headers(db_session)
    form = create_form(db_session, "survey")
    a = place(db_session, create_field(db_session, "a"), form=form)
    b = place(db_session, create_field(db_session, "b"), form=form)
    client = TestClient(app)

    r = client.post(f"/admin/forms/{form.id}/reorder", json={"ids": [str(b.id), str(a.id)]}, headers=headers)
    assert r.status_code == 200
    assert [f["key"] for f in r.json()["fields"]] == ["b", "a"]

    r = client.delete(f"/admin/forms/{form.id}/fields/{a.id}", headers=headers)
    assert r.status_code == 200

    r = client.get(f"/admin/forms/{form.id}", headers=headers)
    assert [f["key"] for f in r.json()["fields"]] == ["b"]


def test_delete_form(db_session):
    headers = admin_headers(db_session)
    form = create_form(db_session, "survey")
    place(db_session, create_field(db_session, "a"), form=form)
    client = TestClient(app)

    assert client.delete(f"/admin/forms/{form.id}", headers=headers).status_code == 200
    assert client.get(f"/admin/forms/{form.id}", headers=headers).status_code == 404
    assert client.get("/admin/fields", headers=headers).json()[0]["containers"] == []
