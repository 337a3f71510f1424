import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shoplist.config import settings
from shoplist.models.user import User
from shoplist.models.role import Role
from shoplist.models.refresh_token import RefreshToken, utcnow
from shoplist.repositories.refresh_token_repository import (
    RefreshTokenRepository, refresh_token_repository,
)
from shoplist.schemas.auth import (
    RegisterRequest, LoginRequest, ClientInfo, Principal,
)
from shoplist.services.credential_verifier import CredentialVerifier
from shoplist.utils.google import ExternalIdentity, google_token_verifier
from shoplist.utils.token_codec import TokenCodec
from shoplist.utils.security import (
    hash_password, generate_refresh_token, hash_refresh_token,
)
from shoplist.utils.log_sanitizer import mask_email, mask_token
from shoplist.utils.audit import AuditAction, log_action
from shoplist.utils.exceptions import (
    AccountDisabledException, EmailTakenException, InvalidTokenException,
    TokenAlreadyUsedException, TokenExpiredException, TokenNotFoundException,
    TokenRevokedException,
)

logger = logging.getLogger(__name__)


class AuthService:
    """
    Login, refresh-token rotation, logout and access-token validation.

    Each refresh token record moves ACTIVE -> ROTATED (revoked, linked to a
    successor) or ACTIVE -> REVOKED (logout). Both end states are final;
    presenting a ROTATED token again is treated as token theft.
    """

    def __init__(
        self,
        token_codec: TokenCodec,
        credential_verifier: CredentialVerifier,
        refresh_tokens: RefreshTokenRepository,
        refresh_token_ttl: timedelta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        default_role: str = settings.DEFAULT_ROLE,
    ):
        self.token_codec = token_codec
        self.credential_verifier = credential_verifier
        self.refresh_tokens = refresh_tokens
        self.refresh_token_ttl = refresh_token_ttl
        self.default_role = default_role

    # ─── Register ─────────────────────────────────────────────────────────────
    def register(self, db: Session, data: RegisterRequest) -> User:
        if db.query(User).filter(User.email == data.email).first():
            raise EmailTakenException()

        user = User.create_local(data.email, data.name, hash_password(data.password))
        user.add_role(self._get_default_role(db))
        db.add(user)
        try:
            db.flush()  # Get user.id without committing
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email
            db.rollback()
            raise EmailTakenException()

        log_action(db, user.id, AuditAction.REGISTER, "User", user.id,
                   f"New user registered: {user.name}")
        db.commit()
        db.refresh(user)
        logger.info(f"User registered: userId={user.id}, email={mask_email(user.email)}")
        return user

    # ─── Login ────────────────────────────────────────────────────────────────
    def login(self, db: Session, data: LoginRequest, client: ClientInfo | None = None) -> dict:
        candidate = db.query(User).filter(User.email == data.email).first()
        user = self.credential_verifier.verify_local(candidate, data.password)
        self._ensure_active(user)

        tokens = self._issue_tokens(db, user, client)
        log_action(db, user.id, AuditAction.LOGIN, "User", user.id, f"{user.name} logged in")
        db.commit()
        logger.info(f"Login succeeded: userId={user.id}")
        return tokens

    # ─── Google Login ─────────────────────────────────────────────────────────
    def google_login(self, db: Session, id_token: str, client: ClientInfo | None = None) -> dict:
        identity = self.credential_verifier.verify_google(id_token)
        email = identity.email.lower()

        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = self._provision_google_user(db, identity)
        else:
            # Google has verified ownership of this email, so the existing
            # account (LOCAL or GOOGLE) is the one that signs in
            logger.info(f"Google login for existing account: userId={user.id}, "
                        f"provider={user.provider.value}")
        self._ensure_active(user)

        tokens = self._issue_tokens(db, user, client)
        log_action(db, user.id, AuditAction.GOOGLE_LOGIN, "User", user.id,
                   f"{user.name} logged in with Google")
        db.commit()
        return tokens

    # ─── Refresh (rotate) ─────────────────────────────────────────────────────
    def refresh(self, db: Session, raw_refresh_token: str, client: ClientInfo | None = None) -> dict:
        current = self._find_presented_token(db, raw_refresh_token)

        if current.is_revoked:
            if current.replacedByTokenId is not None:
                self._handle_reuse(db, current)
                raise TokenAlreadyUsedException()
            logger.warning(f"Revoked refresh token presented: tokenId={current.id}")
            raise TokenRevokedException()

        if current.is_expired:
            logger.warning(f"Expired refresh token presented: tokenId={current.id}, "
                           f"expiresAt={current.expiresAt}")
            raise TokenExpiredException()

        user = current.user
        self._ensure_active(user)

        now = utcnow()
        raw_successor = generate_refresh_token()
        successor = RefreshToken.create(
            user.id,
            hash_refresh_token(raw_successor),
            now + self.refresh_token_ttl,
            client.user_agent if client else None,
            client.ip if client else None,
        )
        self.refresh_tokens.save(db, successor)

        if not self.refresh_tokens.revoke_if_active(db, current.id, now, successor.id):
            # A concurrent request rotated this token between our read and write
            db.rollback()
            logger.warning(f"Concurrent rotation of refresh token lost: tokenId={current.id}")
            raise TokenAlreadyUsedException()
        current.mark_used()

        access_token = self.token_codec.issue(user)
        log_action(db, user.id, AuditAction.REFRESH, "RefreshToken", current.id,
                   f"Refresh token #{current.id} rotated to #{successor.id}")
        db.commit()
        logger.info(f"Refresh token rotated: tokenId={current.id} -> {successor.id}, userId={user.id}")

        return self._token_triple(access_token, raw_successor)

    # ─── Logout ───────────────────────────────────────────────────────────────
    def logout(self, db: Session, raw_refresh_token: str) -> None:
        current = self._find_presented_token(db, raw_refresh_token)

        if current.is_revoked:
            logger.info(f"Logout with already revoked token: tokenId={current.id}")
            return

        if self.refresh_tokens.revoke_if_active(db, current.id, utcnow()):
            log_action(db, current.userId, AuditAction.LOGOUT, "RefreshToken", current.id, "User logged out")
        db.commit()
        logger.info(f"Logout: tokenId={current.id}, userId={current.userId}")

    # ─── Validate access token ────────────────────────────────────────────────
    def validate_access_token(self, raw_access_token: str) -> Principal:
        claims = self.token_codec.validate(raw_access_token)
        try:
            user_id = int(claims["sub"])
        except (KeyError, TypeError, ValueError):
            raise InvalidTokenException("Access token subject is invalid")

        roles = claims.get("roles")
        if not isinstance(roles, list):
            roles = []
        return Principal(user_id=user_id, email=claims.get("email"),
                         roles=tuple(str(r) for r in roles))

    # ─── Internals ────────────────────────────────────────────────────────────
    def _find_presented_token(self, db: Session, raw_refresh_token: str | None) -> RefreshToken:
        if not raw_refresh_token or not raw_refresh_token.strip():
            raise TokenNotFoundException()
        current = self.refresh_tokens.find_by_hash(db, hash_refresh_token(raw_refresh_token))
        if current is None:
            logger.warning(f"Unknown refresh token presented: {mask_token(raw_refresh_token)}")
            raise TokenNotFoundException()
        return current

    def _handle_reuse(self, db: Session, token: RefreshToken) -> None:
        """Revoke every still-active descendant of a replayed, rotated token."""
        now = utcnow()
        revoked_ids = []
        for successor in self.refresh_tokens.iter_lineage(db, token):
            if successor.revokedAt is not None:
                continue
            if self.refresh_tokens.revoke_if_active(db, successor.id, now):
                revoked_ids.append(successor.id)
        logger.error(
            f"SECURITY: rotated refresh token replayed: tokenId={token.id}, "
            f"userId={token.userId}, revoked descendants={revoked_ids}"
        )
        log_action(db, token.userId, AuditAction.TOKEN_REUSE, "RefreshToken", token.id,
                   f"Replay of rotated refresh token #{token.id}; "
                   f"revoked {len(revoked_ids)} descendant token(s)")
        db.commit()

    def _issue_tokens(self, db: Session, user: User, client: ClientInfo | None) -> dict:
        raw_refresh = generate_refresh_token()
        record = RefreshToken.create(
            user.id,
            hash_refresh_token(raw_refresh),
            utcnow() + self.refresh_token_ttl,
            client.user_agent if client else None,
            client.ip if client else None,
        )
        self.refresh_tokens.save(db, record)
        logger.info(f"Refresh token issued: tokenId={record.id}, userId={user.id}")
        return self._token_triple(self.token_codec.issue(user), raw_refresh)

    def _token_triple(self, access_token: str, refresh_token: str) -> dict:
        return {
            "accessToken":  access_token,
            "refreshToken": refresh_token,
            "tokenType":    "Bearer",
            "expiresIn":    self.token_codec.expires_in,
        }

    def _provision_google_user(self, db: Session, identity: ExternalIdentity) -> User:
        user = User.create_google(identity.email.lower(), identity.name)
        user.add_role(self._get_default_role(db))
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            # Another request provisioned the same email first
            db.rollback()
            user = db.query(User).filter(User.email == identity.email.lower()).first()
            if user is None:
                raise
            return user
        log_action(db, user.id, AuditAction.REGISTER, "User", user.id,
                   f"Provisioned from Google account {identity.external_id}")
        logger.info(f"Provisioned Google user: userId={user.id}")
        return user

    def _get_default_role(self, db: Session) -> Role:
        role = db.query(Role).filter(Role.name == self.default_role).first()
        if role is None:
            raise RuntimeError(f"Default role {self.default_role} is missing; run the migrations")
        return role

    @staticmethod
    def _ensure_active(user: User | None) -> None:
        if user is None or not user.is_active:
            raise AccountDisabledException()


auth_service = AuthService(
    token_codec=TokenCodec.from_settings(settings),
    credential_verifier=CredentialVerifier(google_token_verifier),
    refresh_tokens=refresh_token_repository,
)


def get_auth_service() -> AuthService:
    """FastAPI dependency. AuthenticationMiddleware also resolves it through app.dependency_overrides."""
    return auth_service
