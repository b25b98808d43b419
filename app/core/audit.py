import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from app.models.audit_event import AuditEvent
from app.models.user import User

logger = logging.getLogger(__name__)


def log_event(
    *,
    db: Session,
    actor: User | None,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    """
    Stage an audit row in the caller's transaction; it is written by the
    router's commit together with the change it describes.
    A None actor means the shared admin token was used.
    """
    event = AuditEvent(
        actor_user_id=actor.id if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        event_metadata=metadata,
    )
    db.add(event)
    logger.debug("audit %s %s=%s actor=%s", action, entity_type, entity_id, actor.email if actor else "token")
    return event
