from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from shoplist.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; every timestamp we store is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class RefreshToken(Base):
    """
    Opaque refresh token record. Only the SHA-256 hash of the raw value is
    stored. A rotated token points at its successor via replacedByTokenId;
    a token revoked by logout has no successor.
    """
    __tablename__ = "refresh_tokens"

    id                = Column(Integer, primary_key=True, index=True)
    userId            = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    tokenHash         = Column(String(255), nullable=False, unique=True, index=True)
    expiresAt         = Column(TIMESTAMP(timezone=True), nullable=False)
    revokedAt         = Column(TIMESTAMP(timezone=True), nullable=True)
    replacedByTokenId = Column(Integer, nullable=True)
    createdAt         = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    lastUsedAt        = Column(TIMESTAMP(timezone=True), nullable=True)
    userAgent         = Column(String(500), nullable=True)
    ip                = Column(String(45), nullable=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    user = relationship("User", back_populates="refresh_tokens")

    @classmethod
    def create(
        cls,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        user_agent: str | None = None,
        ip: str | None = None,
    ) -> "RefreshToken":
        if user_id is None:
            raise ValueError("Refresh token must belong to a user")
        if not token_hash or not token_hash.strip():
            raise ValueError("Token hash cannot be empty")
        if expires_at is None:
            raise ValueError("Expiry cannot be empty")
        now = utcnow()
        if as_utc(expires_at) <= now:
            raise ValueError("Expiry must be in the future")
        return cls(
            userId=user_id,
            tokenHash=token_hash,
            expiresAt=expires_at,
            createdAt=now,
            userAgent=user_agent[:500] if user_agent else None,
            ip=ip[:45] if ip else None,
        )

    # ─── State ─────────────────────────────────────────────────────────────────
    def revoke(self, replaced_by_id: int | None = None) -> None:
        if self.revokedAt is not None:
            raise ValueError("Refresh token has already been revoked")
        self.revokedAt = utcnow()
        self.replacedByTokenId = replaced_by_id

    def mark_used(self) -> None:
        self.lastUsedAt = utcnow()

    @property
    def is_expired(self) -> bool:
        return as_utc(self.expiresAt) <= utcnow()

    @property
    def is_revoked(self) -> bool:
        return self.revokedAt is not None

    @property
    def is_rotated(self) -> bool:
        return self.revokedAt is not None and self.replacedByTokenId is not None

    @property
    def is_valid(self) -> bool:
        return not self.is_expired and not self.is_revoked

    def __repr__(self):
        return (f"<RefreshToken id={self.id} userId={self.userId} "
                f"revoked={self.is_revoked} replacedBy={self.replacedByTokenId}>")
