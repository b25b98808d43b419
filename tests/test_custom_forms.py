import pytest
from sqlalchemy.exc import OperationalError

from app.core import custom_forms
from app.core.config import settings
from app.core.errors import Conflict, NotFound, StorageError, ValidationError
from app.core.field_catalog import get_field_by_key
from app.core.profiles import get_profile
from app.models.field_placement import FieldPlacement
from app.models.form_submission import FormSubmission
from tests.helpers import create_field, create_form, create_profile, create_user, place


def _event_form(db, **kw):
    form = create_form(db, "event-signup", title="Event signup", **kw)
    place(db, create_field(db, "display_name", label="Display name", write_to="core"), form=form)
    place(
        db,
        create_field(db, "tshirt_size", label="T-shirt size", field_type="select", options=["S", "M", "L"]),
        form=form,
        required=True,
    )
    place(db, create_field(db, "internal_note"), form=form, visible=False)
    return form


def test_create_form_validates_and_normalizes(db_session):
    form = custom_forms.create_form(db_session, {"slug": " Event-Signup ", "title": " Event "})
    assert form.slug == "event-signup"
    assert form.title == "Event"
    assert form.is_active is True

    with pytest.raises(ValidationError) as exc:
        custom_forms.create_form(db_session, {"slug": "bad slug!", "title": ""})
    assert len(exc.value.issues) == 2


def test_create_form_duplicate_slug(db_session):
    create_form(db_session, "taken")
    with pytest.raises(Conflict):
        custom_forms.create_form(db_session, {"slug": "taken", "title": "Again"})


def test_add_form_field_by_key_then_update(db_session):
    form = create_form(db_session, "survey")

    p, created = custom_forms.add_form_field(
        db_session,
        form.id,
        key="Favourite Colour",
        base={"field_type": "select", "options": ["Red", "Green"]},
        attrs={"required": True},
    )
    assert created is True
    assert p.field.key == "favourite_colour"
    assert p.required is True
    assert p.order_index == 0

    again, created = custom_forms.add_form_field(db_session, form.id, field_id=p.field_id, attrs={"help_text": "Pick one"})
    assert created is False
    assert again.id == p.id
    assert again.help_text == "Pick one"


def test_add_form_field_needs_a_field(db_session):
    form = create_form(db_session, "survey")
    with pytest.raises(ValidationError):
        custom_forms.add_form_field(db_session, form.id)


def test_public_read_hides_unpublished_and_inactive(db_session):
    _event_form(db_session, is_published=False)

    with pytest.raises(NotFound):
        custom_forms.get_by_slug(db_session, "event-signup")

    view = custom_forms.get_by_slug(db_session, "event-signup", preview=True)
    assert [r.key for r in view.fields] == ["display_name", "tshirt_size", "internal_note"]


def test_public_read_returns_visible_fields(db_session):
    _event_form(db_session)

    view = custom_forms.get_by_slug(db_session, "event-signup")
    assert view.form.title == "Event signup"
    assert [r.key for r in view.fields] == ["display_name", "tshirt_size"]
    assert view.fields[1].options == ("S", "M", "L")


def test_unknown_form(db_session):
    with pytest.raises(NotFound):
        custom_forms.get_by_slug(db_session, "nope")
    with pytest.raises(NotFound):
        custom_forms.submit(db_session, "nope", {})


def test_inactive_form_rejects_submissions(db_session):
    _event_form(db_session, is_active=False)
    with pytest.raises(Conflict) as exc:
        custom_forms.submit(db_session, "event-signup", {"tshirt_size": "M"})
    assert exc.value.detail == "Form is inactive"


def test_signed_in_submission_merges_into_profile(db_session):
    _event_form(db_session)
    user = create_user(db_session, "ann@test.com")
    create_profile(db_session, user, attributes={"city": "Oslo", "tshirt_size": "S"})

    result = custom_forms.submit(
        db_session,
        "event-signup",
        {"display_name": "Ann", "tshirt_size": "M", "is_admin": True},
        user_id=user.id,
    )
    db_session.commit()

    assert result == {"ok": True}
    profile = get_profile(db_session, user.id)
    assert profile.display_name == "Ann"
    assert profile.attributes == {"city": "Oslo", "tshirt_size": "M"}
    assert db_session.query(FormSubmission).count() == 0


def test_signed_in_submission_creates_missing_profile(db_session):
    _event_form(db_session)
    user = create_user(db_session, "new@test.com")

    custom_forms.submit(db_session, "event-signup", {"tshirt_size": "L"}, user_id=user.id)
    db_session.commit()

    profile = get_profile(db_session, user.id)
    assert profile.role == "member"
    assert profile.attributes == {"tshirt_size": "L"}


def test_anonymous_submission_is_logged(db_session):
    form = _event_form(db_session)

    result = custom_forms.submit(db_session, "event-signup", {"tshirt_size": "M", "unknown": "x"})
    db_session.commit()

    assert result == {"ok": True}
    rows, total = custom_forms.list_submissions(db_session, form.id)
    assert total == 1
    assert rows[0].user_id is None
    assert rows[0].payload == {"tshirt_size": "M"}


def test_anonymous_storage_failure_still_succeeds(db_session, monkeypatch, caplog):
    _event_form(db_session)

    def boom(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(custom_forms, "record_submission", boom)

    result = custom_forms.submit(db_session, "event-signup", {"tshirt_size": "M"})

    assert result == {"ok": True}
    assert "not recorded" in caplog.text


def test_signed_in_storage_failure_surfaces(db_session, monkeypatch):
    _event_form(db_session)
    user = create_user(db_session, "ann@test.com")

    def boom(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(db_session, "flush", boom)

    with pytest.raises(StorageError) as exc:
        custom_forms.submit(db_session, "event-signup", {"tshirt_size": "M"}, user_id=user.id)
    assert exc.value.status_code == 503
    assert exc.value.detail == "Could not save profile"


def test_submission_validation_is_opt_in(db_session, monkeypatch):
    _event_form(db_session)

    # trusted by default: missing required value is accepted
    assert custom_forms.submit(db_session, "event-signup", {}) == {"ok": True}

    with pytest.raises(ValidationError) as exc:
        custom_forms.submit(db_session, "event-signup", {"tshirt_size": "XXL"}, validate=True)
    assert exc.value.issues == ["T-shirt size must be one of: S, M, L"]

    monkeypatch.setattr(settings, "VALIDATE_CUSTOM_FORM_SUBMISSIONS", True)
    with pytest.raises(ValidationError) as exc:
        custom_forms.submit(db_session, "event-signup", {})
    assert exc.value.issues == ["T-shirt size is required"]


def test_unpublished_but_active_form_accepts_submissions(db_session):
    _event_form(db_session, is_published=False)
    assert custom_forms.submit(db_session, "event-signup", {"tshirt_size": "S"}) == {"ok": True}


def test_delete_form_keeps_definitions(db_session):
    form = _event_form(db_session)
    custom_forms.submit(db_session, "event-signup", {"tshirt_size": "S"})

    custom_forms.delete_form(db_session, form.id)
    db_session.commit()

    assert db_session.query(FieldPlacement).count() == 0
    assert db_session.query(FormSubmission).count() == 0
    assert get_field_by_key(db_session, "tshirt_size") is not None
