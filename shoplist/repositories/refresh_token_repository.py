from datetime import datetime
from typing import Iterator

from sqlalchemy.orm import Session

from shoplist.models.refresh_token import RefreshToken


class RefreshTokenRepository:
    """
    Keyed access to refresh token records. Hashing and every business rule
    live in AuthService; this class only reads and writes rows.
    """

    def save(self, db: Session, token: RefreshToken) -> RefreshToken:
        db.add(token)
        db.flush()  # assigns token.id without committing
        return token

    def find_by_hash(self, db: Session, token_hash: str) -> RefreshToken | None:
        return db.query(RefreshToken).filter(RefreshToken.tokenHash == token_hash).first()

    def find_by_id(self, db: Session, token_id: int) -> RefreshToken | None:
        return db.query(RefreshToken).filter(RefreshToken.id == token_id).first()

    def revoke_if_active(
        self,
        db: Session,
        token_id: int,
        revoked_at: datetime,
        replaced_by_id: int | None = None,
    ) -> bool:
        """
        Compare-and-set revocation: a single UPDATE guarded by
        ``revokedAt IS NULL``. Returns False when another transaction got
        there first, which makes rotation single-use under concurrency.
        """
        changed = (
            db.query(RefreshToken)
            .filter(RefreshToken.id == token_id, RefreshToken.revokedAt.is_(None))
            .update({
                "revokedAt":         revoked_at,
                "replacedByTokenId": replaced_by_id,
            })
        )
        return changed == 1

    def iter_lineage(self, db: Session, token: RefreshToken) -> Iterator[RefreshToken]:
        """Yield every successor of ``token`` by following replacedByTokenId."""
        seen = {token.id}
        next_id = token.replacedByTokenId
        while next_id is not None and next_id not in seen:
            successor = self.find_by_id(db, next_id)
            if successor is None:
                return
            seen.add(successor.id)
            yield successor
            next_id = successor.replacedByTokenId

    # ─── Test support ─────────────────────────────────────────────────────────
    def find_all(self, db: Session) -> list[RefreshToken]:
        return db.query(RefreshToken).order_by(RefreshToken.id).all()

    def delete_all(self, db: Session) -> int:
        return db.query(RefreshToken).delete()


refresh_token_repository = RefreshTokenRepository()
