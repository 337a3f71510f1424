import logging
from dataclasses import dataclass

import httpx

from shoplist.config import settings

logger = logging.getLogger(__name__)

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


@dataclass(frozen=True)
class ExternalIdentity:
    email: str
    name: str
    external_id: str
    email_verified: bool


class GoogleTokenError(Exception):
    """The Google ID token could not be verified."""


class GoogleTokenVerifier:
    """
    Verifies Google ID tokens through Google's tokeninfo endpoint.

    Google checks the signature and expiry; we check that the token was
    issued by Google for our OAuth client.
    """

    def __init__(
        self,
        client_id: str,
        tokeninfo_url: str = settings.GOOGLE_TOKENINFO_URL,
        timeout: float = settings.GOOGLE_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        self.client_id = client_id
        self.tokeninfo_url = tokeninfo_url
        self.timeout = timeout
        self._transport = transport

    def verify(self, id_token: str) -> ExternalIdentity:
        if not self.client_id:
            raise GoogleTokenError("Google login is not configured")
        if not id_token or not id_token.strip():
            raise GoogleTokenError("Google token is empty")

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(self.tokeninfo_url, params={"id_token": id_token})
        except httpx.HTTPError as e:
            logger.error(f"Google tokeninfo request failed: {e}")
            raise GoogleTokenError("Could not reach Google to verify the token") from e

        if response.status_code != 200:
            logger.warning(f"Google rejected ID token: HTTP {response.status_code}")
            raise GoogleTokenError("Google token is invalid or expired")

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Google tokeninfo returned a non-JSON body: {e}")
            raise GoogleTokenError("Google returned an unreadable token response") from e
        if not isinstance(payload, dict):
            raise GoogleTokenError("Google returned an unexpected token response")

        if payload.get("aud") != self.client_id:
            raise GoogleTokenError("Google token was issued for another client")
        if payload.get("iss") not in GOOGLE_ISSUERS:
            raise GoogleTokenError("Google token has an unexpected issuer")

        email = payload.get("email")
        subject = payload.get("sub")
        if not email or not subject:
            raise GoogleTokenError("Google token carries no email or subject")

        # tokeninfo returns booleans as strings
        verified = str(payload.get("email_verified", "false")).lower() == "true"
        return ExternalIdentity(
            email=email,
            name=payload.get("name") or email.split("@")[0],
            external_id=subject,
            email_verified=verified,
        )


google_token_verifier = GoogleTokenVerifier(client_id=settings.GOOGLE_CLIENT_ID)
