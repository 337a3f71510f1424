import base64
import hashlib
import secrets

from passlib.context import CryptContext

from shoplist.config import settings

# ─── Password Hashing ─────────────────────────────────────────────────────────
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# Verified against when the email is unknown so both paths cost one bcrypt check
_DUMMY_PASSWORD_HASH = pwd_context.hash("dummy-password-never-matches")


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password using bcrypt."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    if not hashed_password:
        pwd_context.verify(plain_password, _DUMMY_PASSWORD_HASH)
        return False
    return pwd_context.verify(plain_password, hashed_password)


# ─── Refresh Tokens ───────────────────────────────────────────────────────────
def generate_refresh_token() -> str:
    """Return a new opaque refresh token (384 bits of entropy, URL-safe)."""
    return secrets.token_urlsafe(48)


def hash_refresh_token(raw_token: str) -> str:
    """
    SHA-256 digest of a raw refresh token, base64 encoded.
    This is the only form in which refresh tokens are persisted.
    """
    if raw_token is None or not raw_token.strip():
        raise ValueError("Token cannot be empty")
    digest = hashlib.sha256(raw_token.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")
