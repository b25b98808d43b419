import pytest

from app.core.errors import Conflict, ValidationError
from app.core.field_catalog import (
    check_attrs,
    create_field,
    delete_field,
    derive_key,
    get_field_by_key,
    normalize_key,
    patch_field,
    resolve_or_create,
)
from tests.helpers import create_field as make_field, place


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("email", "email"),
        ("  First Name! ", "first_name"),
        ("__a--b__", "a_b"),
        ("T-Shirt Size (EU)", "t_shirt_size_eu"),
        (42, "42"),
    ],
)
def test_normalize_key(raw, expected):
    assert normalize_key(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "!!!", "___"])
def test_normalize_key_rejects_empty(raw):
    with pytest.raises(ValidationError) as exc:
        normalize_key(raw)
    assert exc.value.issues == ["key is required"]
    assert exc.value.status_code == 400


def test_derive_key_falls_back_to_label():
    assert derive_key(None, "Favourite Colour") == "favourite_colour"
    assert derive_key("  ", "Phone") == "phone"
    assert derive_key("nick", "Nickname") == "nick"


def test_create_field_defaults(db_session):
    f = create_field(db_session, {"label": "Phone Number"})
    assert f.key == "phone_number"
    assert f.label == "Phone Number"
    assert f.field_type == "text"
    assert f.write_to == "attributes"
    assert f.system is False


def test_create_field_duplicate_key_conflicts(db_session):
    make_field(db_session, "phone")
    with pytest.raises(Conflict):
        create_field(db_session, {"key": "Phone"})


def test_check_attrs_collects_every_issue():
    with pytest.raises(ValidationError) as exc:
        check_attrs({"field_type": "bogus", "min_length": -1, "validation_regex": "("})

    issues = exc.value.issues
    assert len(issues) == 3
    assert any(i.startswith("type must be one of") for i in issues)
    assert "min_length must be a non-negative integer" in issues
    assert "validation_regex is not a valid pattern" in issues


def test_check_attrs_unknown_attribute():
    with pytest.raises(ValidationError) as exc:
        check_attrs({"colour": "red"})
    assert exc.value.issues == ["unknown attribute: colour"]


def test_check_attrs_select_needs_options():
    with pytest.raises(ValidationError) as exc:
        check_attrs({"field_type": "select"})
    assert "options are required when type is select" in exc.value.issues

    clean = check_attrs({"field_type": "select", "options": ["S", "M", 3]})
    assert clean["options"] == ["S", "M", "3"]


def test_check_attrs_min_above_max():
    with pytest.raises(ValidationError) as exc:
        check_attrs({"min_length": 10, "max_length": 2})
    assert exc.value.issues == ["min_length must be <= max_length"]


def test_resolve_or_create_creates_on_first_use(db_session):
    f = resolve_or_create(db_session, "Newsletter Opt In", {"field_type": "checkbox", "label": "Newsletter"})
    assert f.key == "newsletter_opt_in"
    assert f.field_type == "checkbox"
    assert get_field_by_key(db_session, "newsletter_opt_in").id == f.id


def test_resolve_or_create_is_non_destructive(db_session):
    existing = make_field(db_session, "nickname", label="Nickname", min_length=2)

    f = resolve_or_create(db_session, "nickname", {"label": None, "max_length": 20})

    assert f.id == existing.id
    assert f.label == "Nickname"
    assert f.min_length == 2
    assert f.max_length == 20


def test_patch_field_rejects_taken_key(db_session):
    make_field(db_session, "city")
    town = make_field(db_session, "town")

    with pytest.raises(Conflict):
        patch_field(db_session, town.id, {"key": "City"})


def test_patch_away_from_select_clears_options(db_session):
    f = make_field(db_session, "size", field_type="select", options=["S", "M"])

    patch_field(db_session, f.id, {"field_type": "text"})

    assert f.field_type == "text"
    assert f.options is None


def test_delete_system_field_conflicts(db_session):
    f = make_field(db_session, "email", field_type="email", write_to="core", system=True)
    with pytest.raises(Conflict) as exc:
        delete_field(db_session, f.id)
    assert exc.value.detail == "System fields cannot be deleted"


def test_delete_placed_system_field_reports_system(db_session):
    f = make_field(db_session, "password", field_type="password", write_to="core", system=True)
    place(db_session, f, scope="registration")
    place(db_session, f, scope="login")

    with pytest.raises(Conflict) as exc:
        delete_field(db_session, f.id)
    assert exc.value.detail == "System fields cannot be deleted"


def test_delete_placed_field_conflicts(db_session):
    f = make_field(db_session, "bio")
    place(db_session, f, scope="profile")

    with pytest.raises(Conflict) as exc:
        delete_field(db_session, f.id)
    assert "1 container" in exc.value.detail


def test_delete_unplaced_field(db_session):
    f = make_field(db_session, "bio")
    delete_field(db_session, f.id)
    db_session.commit()
    assert get_field_by_key(db_session, "bio") is None
