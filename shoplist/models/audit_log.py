from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP
from sqlalchemy.sql import func
from shoplist.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id          = Column(Integer, primary_key=True, index=True)
    userId      = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)  # NULL = system action
    action      = Column(String(100), nullable=False)       # e.g. REGISTER, LOGIN, REFRESH, TOKEN_REUSE
    entityType  = Column(String(100), nullable=False)       # e.g. User, RefreshToken
    entityId    = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<AuditLog id={self.id} action={self.action} entity={self.entityType}:{self.entityId}>"
