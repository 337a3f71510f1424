from fastapi import Depends, Request
from sqlalchemy.orm import Session

from shoplist.database import get_db
from shoplist.models.user import User
from shoplist.models.role import RoleName
from shoplist.schemas.auth import Principal
from shoplist.utils.exceptions import (
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
)


# ─── Get Principal ────────────────────────────────────────────────────────────
def get_principal(request: Request) -> Principal:
    """
    Return the Principal set by AuthenticationMiddleware.
    A rejected token re-raises the error the middleware recorded; no
    token at all is a plain 401 UNAUTHORIZED.
    """
    principal: Principal | None = getattr(request.state, "principal", None)
    if principal is not None:
        return principal

    auth_error = getattr(request.state, "auth_error", None)
    if auth_error is not None:
        raise auth_error
    raise UnauthorizedException("No authentication token provided")


# ─── Get Current User ─────────────────────────────────────────────────────────
def get_current_user(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> User:
    """Load the authenticated user from the database. 404 if it no longer exists."""
    user = db.query(User).filter(User.id == principal.user_id).first()
    if not user:
        raise NotFoundException("User")
    return user


# ─── Role Guards ──────────────────────────────────────────────────────────────
def require_roles(*roles: str):
    """
    Factory that returns a FastAPI dependency requiring one of the given roles.
    Roles are read from the access token, so no database lookup is needed.

    Usage:
        @router.get("/admin-only")
        def admin_route(principal = Depends(require_roles(RoleName.ADMIN))):
            ...
    """
    def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if not any(principal.has_role(r) for r in roles):
            raise ForbiddenException(
                f"This action requires one of these roles: {list(roles)}"
            )
        return principal
    return dependency


def get_admin_principal(principal: Principal = Depends(require_roles(RoleName.ADMIN))) -> Principal:
    return principal
