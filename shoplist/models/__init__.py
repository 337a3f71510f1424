"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Parent tables are imported before the tables that reference them.
"""

from shoplist.models.role import Role, RoleName
from shoplist.models.user import User, AuthProvider, UserStatus, user_roles
from shoplist.models.refresh_token import RefreshToken
from shoplist.models.audit_log import AuditLog

__all__ = [
    "Role",
    "RoleName",
    "User",
    "AuthProvider",
    "UserStatus",
    "user_roles",
    "RefreshToken",
    "AuditLog",
]
