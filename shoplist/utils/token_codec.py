import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jws, jwt
from jose.exceptions import JWSError

from shoplist.config import Settings
from shoplist.utils.exceptions import (
    AccessTokenExpiredException,
    InvalidTokenException,
    InvalidTokenSignatureException,
    MalformedTokenException,
)

logger = logging.getLogger(__name__)

MIN_SECRET_BYTES = 32


class TokenCodec:
    """
    Issues and validates the signed access tokens (JWT, HMAC).

    Claims: sub (user id), email, name, provider, roles, iss, iat, exp.
    Validation order is structure, then signature, then claims, so nothing
    in the payload is trusted before the signature has been checked.
    """

    def __init__(
        self,
        secret: str,
        issuer: str,
        access_token_ttl: timedelta,
        algorithm: str = "HS256",
    ):
        if len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ValueError("Signing secret must be at least 256 bits")
        self._secret = secret
        self._algorithm = algorithm
        self.issuer = issuer
        self.access_token_ttl = access_token_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            secret=settings.SECRET_KEY,
            issuer=settings.JWT_ISSUER,
            access_token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            algorithm=settings.ALGORITHM,
        )

    @property
    def expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.access_token_ttl.total_seconds())

    # ─── Issue ────────────────────────────────────────────────────────────────
    def issue(self, user) -> str:
        now = datetime.now(timezone.utc)
        provider = getattr(user.provider, "value", user.provider)
        payload = {
            "sub":      str(user.id),
            "email":    user.email,
            "name":     user.name,
            "provider": provider,
            "roles":    [role.name for role in user.roles],
            "iss":      self.issuer,
            "iat":      now,
            "exp":      now + self.access_token_ttl,
        }
        logger.debug(f"Issuing access token for userId={user.id}")
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    # ─── Validate ─────────────────────────────────────────────────────────────
    def validate(self, token: str | None) -> dict[str, Any]:
        """
        Return the verified claims of an access token.

        Raises:
            MalformedTokenException:        empty, absent or structurally invalid
            InvalidTokenSignatureException: signature does not match the key
            AccessTokenExpiredException:    exp is in the past
            InvalidTokenException:          anything else (issuer, missing sub, ...)
        """
        if token is None or not token.strip():
            raise MalformedTokenException()

        try:
            jwt.get_unverified_header(token)
        except JWTError:
            raise MalformedTokenException()

        try:
            jws.verify(token, self._secret, algorithms=[self._algorithm])
        except JWSError:
            raise InvalidTokenSignatureException()

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self.issuer,
                options={"require_sub": True, "require_exp": True},
            )
        except ExpiredSignatureError:
            raise AccessTokenExpiredException()
        except JWTError as e:
            logger.warning(f"Access token rejected: {e}")
            raise InvalidTokenException()
        return claims

    # ─── Claim accessors (each one validates the token) ───────────────────────
    def extract_subject(self, token: str) -> str:
        return self.validate(token)["sub"]

    def extract_email(self, token: str) -> str | None:
        return self.validate(token).get("email")

    def extract_name(self, token: str) -> str | None:
        return self.validate(token).get("name")

    def extract_roles(self, token: str) -> list[str]:
        roles = self.validate(token).get("roles")
        if roles is None:
            logger.warning("Access token has no 'roles' claim")
            return []
        if not isinstance(roles, list):
            logger.warning(f"'roles' claim is a {type(roles).__name__}, not a list")
            return []
        return [str(r) for r in roles]
