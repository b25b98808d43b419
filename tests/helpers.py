from datetime import datetime

from sqlalchemy.orm import Session

from app.core.containers import Container
from app.core.ordering import next_order_index
from app.models.field_definition import FieldDefinition
from app.models.field_placement import FieldPlacement
from app.models.form import Form
from app.models.profile import Profile
from app.models.user import User


def create_user(db: Session, email: str, is_admin=False) -> User:
    u = User(email=email, is_active=True, is_admin=is_admin)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def admin_headers(db: Session, email: str = "admin@test.com") -> dict:
    if not db.query(User).filter(User.email == email).one_or_none():
        create_user(db, email, is_admin=True)
    return {"X-User-Email": email}


def create_field(
    db: Session,
    key: str,
    *,
    label: str | None = None,
    field_type: str = "text",
    write_to: str = "attributes",
    system: bool = False,
    **extra,
) -> FieldDefinition:
    now = datetime.utcnow()
    f = FieldDefinition(
        key=key,
        label=label or key,
        field_type=field_type,
        write_to=write_to,
        system=system,
        created_at=now,
        updated_at=now,
        **extra,
    )
    db.add(f)
    db.commit()
    db.refresh(f)
    return f


def place(
    db: Session,
    field: FieldDefinition,
    *,
    scope: str | None = None,
    form: Form | None = None,
    order_index: int | None = None,
    visible: bool = True,
    required: bool = False,
    help_text: str | None = None,
) -> FieldPlacement:
    container = Container.for_scope(scope) if scope else Container.for_form(form.id)
    if order_index is None:
        order_index = next_order_index(db, container)

    now = datetime.utcnow()
    p = FieldPlacement(
        field_id=field.id,
        order_index=order_index,
        visible=visible,
        required=required,
        help_text=help_text,
        created_at=now,
        updated_at=now,
        **container.columns(),
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


def create_form(
    db: Session,
    slug: str,
    *,
    title: str = "Signup",
    is_active: bool = True,
    is_published: bool = True,
) -> Form:
    now = datetime.utcnow()
    form = Form(
        slug=slug,
        title=title,
        is_active=is_active,
        is_published=is_published,
        created_at=now,
        updated_at=now,
    )
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def create_profile(db: Session, user: User, **values) -> Profile:
    now = datetime.utcnow()
    values.setdefault("attributes", {})
    p = Profile(id=user.id, created_at=now, updated_at=now, **values)
    db.add(p)
    db.commit()
    db.refresh(p)
    return p
