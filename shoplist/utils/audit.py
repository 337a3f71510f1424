from sqlalchemy.orm import Session

from shoplist.models.audit_log import AuditLog


class AuditAction:
    REGISTER     = "REGISTER"
    LOGIN        = "LOGIN"
    GOOGLE_LOGIN = "GOOGLE_LOGIN"
    REFRESH      = "REFRESH"
    LOGOUT       = "LOGOUT"
    TOKEN_REUSE  = "TOKEN_REUSE"


def log_action(
    db: Session,
    user_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    description: str | None = None,
) -> AuditLog:
    """
    Stage an audit entry in the caller's transaction; the caller commits.

    Descriptions end up in plain text: refer to tokens by record id,
    never by value.

        log_action(db, user.id, AuditAction.LOGIN, "User", user.id, "Ann logged in")
        db.commit()
    """
    entry = AuditLog(
        userId=user_id,
        action=action,
        entityType=entity_type,
        entityId=entity_id,
        description=description,
    )
    db.add(entry)
    return entry
