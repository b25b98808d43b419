from app.models.audit_event import AuditEvent
from app.models.field_definition import FieldDefinition
from app.models.field_placement import FieldPlacement
from app.models.form import Form
from app.models.form_submission import FormSubmission
from app.models.profile import Profile
from app.models.user import User

__all__ = [ "AuditEvent", "FieldDefinition", "FieldPlacement",
           "Form", "FormSubmission", "Profile", "User" ]
