import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.modules.audit.models.audit_log import AuditAction, AuditLog

logger = logging.getLogger("app")


def record(
    db: Session,
    action: AuditAction,
    entity_type: str,
    entity_id: str,
    user_id: Optional[str],
    description: str = None,
) -> AuditLog:
    """Add an audit entry to the current transaction; the caller commits"""
    entry = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        description=description,
    )
    db.add(entry)
    logger.info(f"Audit: {action.value} {entity_type} {entity_id} by {user_id}")
    return entry

