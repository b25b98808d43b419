# seed_dev.py
from sqlalchemy.orm import Session

from app.core.containers import Container
from app.core.custom_forms import add_form_field, create_form, find_form_by_slug
from app.core.logging import configure_logging
from app.core.placement_sync import sync_placements
from app.db.session import SessionLocal
from app.models.user import User


# ---------- helpers ----------

def get_or_create_user(db: Session, email: str, is_admin: bool = False) -> User:
    u = db.query(User).filter(User.email == email).one_or_none()
    if u:
        # keep these up to date in dev
        changed = False
        if u.is_admin != is_admin:
            u.is_admin = is_admin
            changed = True
        if not u.is_active:
            u.is_active = True
            changed = True
        if changed:
            db.commit()
            db.refresh(u)
        return u

    u = User(email=email, is_active=True, is_admin=is_admin)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def sync_scopes(db: Session, key: str, scopes: list[str], base: dict, overrides: dict | None = None):
    result = sync_placements(
        db,
        key,
        [Container.for_scope(s) for s in scopes],
        field_base=base,
        overrides={Container.for_scope(s): o for s, o in (overrides or {}).items()},
    )
    db.commit()
    return result


# ---------- main ----------

def main():
    configure_logging()
    db = SessionLocal()
    try:
        # ---- Users ----
        admin_user = get_or_create_user(db, "admin@local.test", is_admin=True)
        member_user = get_or_create_user(db, "member@local.test")

        # ---- System fields: sign-up / sign-in ----
        sync_scopes(
            db,
            "email",
            ["registration", "login"],
            base={"label": "Email", "field_type": "email", "write_to": "core", "system": True},
            overrides={"registration": {"required": True}, "login": {"required": True}},
        )
        sync_scopes(
            db,
            "password",
            ["registration", "login"],
            base={"label": "Password", "field_type": "password", "write_to": "core", "min_length": 8, "system": True},
            overrides={"registration": {"required": True}, "login": {"required": True}},
        )

        # ---- Profile fields ----
        sync_scopes(
            db,
            "display_name",
            ["registration", "profile"],
            base={"label": "Display name", "write_to": "core", "max_length": 200},
        )
        sync_scopes(db, "bio", ["profile"], base={"label": "Bio", "field_type": "textarea", "write_to": "core"})
        sync_scopes(
            db,
            "newsletter_opt_in",
            ["registration", "profile"],
            base={"label": "Send me the newsletter", "field_type": "checkbox"},
        )

        # ---- Demo custom form ----
        form = find_form_by_slug(db, "event-signup")
        if form is None:
            form = create_form(
                db,
                {"slug": "event-signup", "title": "Event signup", "description": "Dev seed form"},
            )
            db.commit()

        add_form_field(
            db,
            form.id,
            key="tshirt_size",
            base={"label": "T-shirt size", "field_type": "select", "options": ["S", "M", "L", "XL"]},
            attrs={"required": True},
        )
        add_form_field(db, form.id, key="dietary_notes", base={"label": "Dietary notes", "field_type": "textarea"})
        db.commit()

        print("\n=== DEV SEED COMPLETE ===")
        print("Users:")
        print(f"  admin:  {admin_user.email}")
        print(f"  member: {member_user.email}")

        print("\nScopes:")
        print("  registration: email, password, display_name, newsletter_opt_in")
        print("  login:        email, password")
        print("  profile:      display_name, bio, newsletter_opt_in")

        print("\nForm:")
        print(f"  form_id: {form.id} (slug={form.slug})")

        print("\nNext API steps (Postman):")
        print("  GET  /scopes/registration/fields")
        print(f"  GET  /forms/{form.slug}")
        print(f"  POST /forms/{form.slug}/submit  (optionally as member@local.test)")
        print("  PUT  /admin/fields/<key>/scopes  (as admin@local.test)")

    finally:
        db.close()


if __name__ == "__main__":
    main()
