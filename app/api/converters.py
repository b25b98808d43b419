from app.core.containers import Container
from app.core.field_validation import FieldRule
from app.models.field_definition import FieldDefinition
from app.models.field_placement import FieldPlacement
from app.models.form import Form
from app.models.form_submission import FormSubmission
from app.schemas.fields import FieldDefinitionOut
from app.schemas.forms import FormOut, SubmissionOut
from app.schemas.placements import PlacementOut, PublicField


def field_out(f: FieldDefinition, containers: list[Container]) -> FieldDefinitionOut:
    return FieldDefinitionOut(
        id=str(f.id),
        key=f.key,
        label=f.label,
        field_type=f.field_type,
        write_to=f.write_to,
        validation_regex=f.validation_regex,
        min_length=f.min_length,
        max_length=f.max_length,
        options=f.options,
        system=f.system,
        containers=[str(c) for c in containers],
        created_at=f.created_at,
        updated_at=f.updated_at,
    )


def placement_out(p: FieldPlacement) -> PlacementOut:
    f = p.field
    return PlacementOut(
        id=str(p.id),
        field_id=str(f.id),
        container=str(Container.of(p)),
        key=f.key,
        label=f.label or f.key,
        field_type=f.field_type,
        write_to=f.write_to,
        order_index=p.order_index,
        visible=p.visible,
        required=p.required,
        help_text=p.help_text,
        options=f.options,
        validation_regex=f.validation_regex,
        min_length=f.min_length,
        max_length=f.max_length,
        system=f.system,
    )


def public_field(r: FieldRule) -> PublicField:
    return PublicField(
        key=r.key,
        label=r.label,
        type=r.field_type,
        required=r.required,
        visible=r.visible,
        options=list(r.options) if r.options is not None else None,
        help_text=r.help_text,
        order_index=r.order_index,
    )


def form_out(form: Form) -> FormOut:
    return FormOut(
        id=str(form.id),
        slug=form.slug,
        title=form.title,
        description=form.description,
        is_active=form.is_active,
        is_published=form.is_published,
        created_at=form.created_at,
        updated_at=form.updated_at,
    )


def submission_out(s: FormSubmission) -> SubmissionOut:
    return SubmissionOut(
        id=str(s.id),
        form_id=str(s.form_id),
        user_id=str(s.user_id) if s.user_id else None,
        payload=s.payload or {},
        created_at=s.created_at,
    )
