import logging

from shoplist.models.user import User
from shoplist.utils.google import ExternalIdentity, GoogleTokenError, GoogleTokenVerifier
from shoplist.utils.log_sanitizer import mask_email
from shoplist.utils.security import verify_password
from shoplist.utils.exceptions import (
    InvalidCredentialsException,
    InvalidExternalTokenException,
)

logger = logging.getLogger(__name__)


class CredentialVerifier:
    """Checks local passwords and Google ID tokens."""

    def __init__(self, google_verifier: GoogleTokenVerifier):
        self.google_verifier = google_verifier

    # ─── Local ────────────────────────────────────────────────────────────────
    def verify_local(self, user: User | None, password: str) -> User:
        """
        Return the user when the password matches.
        An unknown email, a Google-only account and a wrong password all raise
        the same InvalidCredentialsException after one bcrypt comparison.
        """
        stored_hash = user.passwordHash if user is not None else None
        if not verify_password(password, stored_hash) or user is None:
            raise InvalidCredentialsException()
        return user

    # ─── Google ───────────────────────────────────────────────────────────────
    def verify_google(self, id_token: str) -> ExternalIdentity:
        try:
            identity = self.google_verifier.verify(id_token)
        except GoogleTokenError as e:
            logger.warning(f"Google token rejected: {e}")
            raise InvalidExternalTokenException()

        if not identity.email_verified:
            logger.warning(f"Google email not verified: {mask_email(identity.email)}")
            raise InvalidExternalTokenException("Google account email is not verified")

        return identity
