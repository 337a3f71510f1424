import httpx
import pytest

from shoplist.models import User
from shoplist.services.credential_verifier import CredentialVerifier
from shoplist.utils.exceptions import InvalidCredentialsException, InvalidExternalTokenException
from shoplist.utils.google import GoogleTokenError, GoogleTokenVerifier
from shoplist.utils.security import hash_password

CLIENT_ID = "client-123.apps.googleusercontent.com"


def tokeninfo_payload(**overrides):
    payload = {
        "aud": CLIENT_ID,
        "iss": "https://accounts.google.com",
        "sub": "1099",
        "email": "bob@gmail.com",
        "email_verified": "true",
        "name": "Bob",
    }
    payload.update(overrides)
    return payload


def google_verifier(status_code=200, payload=None, client_id=CLIENT_ID):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json=payload if payload is not None else {})

    verifier = GoogleTokenVerifier(client_id, "https://google.test/tokeninfo",
                                   timeout=1.0, transport=httpx.MockTransport(handler))
    return verifier, requests


# ─── Local passwords ──────────────────────────────────────────────────────────
class TestVerifyLocal:
    @pytest.fixture(autouse=True)
    def _verifier(self, fake_google_verifier):
        self.verifier = CredentialVerifier(fake_google_verifier)

    def test_correct_password_returns_user(self):
        user = User.create_local("ann@example.com", "Ann", hash_password("Password1"))
        assert self.verifier.verify_local(user, "Password1") is user

    def test_wrong_password(self):
        user = User.create_local("ann@example.com", "Ann", hash_password("Password1"))
        with pytest.raises(InvalidCredentialsException) as exc_info:
            self.verifier.verify_local(user, "Password2")
        assert exc_info.value.message == "Invalid email or password"

    def test_unknown_user_gets_same_error(self):
        with pytest.raises(InvalidCredentialsException) as exc_info:
            self.verifier.verify_local(None, "Password1")
        assert exc_info.value.message == "Invalid email or password"

    def test_google_only_account_has_no_password(self):
        user = User.create_google("bob@gmail.com", "Bob")
        with pytest.raises(InvalidCredentialsException):
            self.verifier.verify_local(user, "Password1")


# ─── Google ID tokens ─────────────────────────────────────────────────────────
class TestVerifyGoogle:
    def test_verified_identity_is_returned(self, fake_google_verifier):
        fake_google_verifier.add("good-token", "bob@gmail.com", "Bob")
        identity = CredentialVerifier(fake_google_verifier).verify_google("good-token")
        assert identity.email == "bob@gmail.com"

    def test_rejected_token(self, fake_google_verifier):
        with pytest.raises(InvalidExternalTokenException):
            CredentialVerifier(fake_google_verifier).verify_google("bad-token")

    def test_unverified_email_is_rejected(self, fake_google_verifier):
        fake_google_verifier.add("token", "bob@gmail.com", email_verified=False)
        with pytest.raises(InvalidExternalTokenException) as exc_info:
            CredentialVerifier(fake_google_verifier).verify_google("token")
        assert "not verified" in exc_info.value.message


class TestGoogleTokenVerifier:
    def test_valid_tokeninfo_response(self):
        verifier, requests = google_verifier(payload=tokeninfo_payload())
        identity = verifier.verify("id-token-abc")

        assert identity.email == "bob@gmail.com"
        assert identity.name == "Bob"
        assert identity.external_id == "1099"
        assert identity.email_verified is True
        assert requests[0].url.params["id_token"] == "id-token-abc"

    def test_name_falls_back_to_email_local_part(self):
        verifier, _ = google_verifier(payload=tokeninfo_payload(name=None))
        assert verifier.verify("id-token").name == "bob"

    def test_unverified_email_flag(self):
        verifier, _ = google_verifier(payload=tokeninfo_payload(email_verified="false"))
        assert verifier.verify("id-token").email_verified is False

    @pytest.mark.parametrize("payload", [
        tokeninfo_payload(aud="someone-else"),
        tokeninfo_payload(iss="https://evil.example.com"),
        tokeninfo_payload(email=None),
        tokeninfo_payload(sub=None),
    ])
    def test_invalid_claims(self, payload):
        verifier, _ = google_verifier(payload=payload)
        with pytest.raises(GoogleTokenError):
            verifier.verify("id-token")

    def test_non_200_response(self):
        verifier, _ = google_verifier(status_code=400, payload={"error": "invalid_token"})
        with pytest.raises(GoogleTokenError):
            verifier.verify("id-token")

    def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        verifier = GoogleTokenVerifier(CLIENT_ID, "https://google.test/tokeninfo",
                                       transport=httpx.MockTransport(handler))
        with pytest.raises(GoogleTokenError):
            verifier.verify("id-token")

    def test_empty_token_and_missing_client_id(self):
        verifier, requests = google_verifier(payload=tokeninfo_payload())
        with pytest.raises(GoogleTokenError):
            verifier.verify("  ")

        unconfigured, _ = google_verifier(payload=tokeninfo_payload(), client_id="")
        with pytest.raises(GoogleTokenError):
            unconfigured.verify("id-token")
        assert requests == []

    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
    ])
    def test_unreadable_tokeninfo_body(self, response):
        verifier = GoogleTokenVerifier(CLIENT_ID, "https://google.test/tokeninfo",
                                       transport=httpx.MockTransport(lambda request: response))
        with pytest.raises(GoogleTokenError):
            verifier.verify("id-token")

    def test_unreadable_body_is_an_invalid_external_token(self):
        verifier = GoogleTokenVerifier(CLIENT_ID, "https://google.test/tokeninfo",
                                       transport=httpx.MockTransport(
                                           lambda request: httpx.Response(200, text="oops")))
        with pytest.raises(InvalidExternalTokenException):
            CredentialVerifier(verifier).verify_google("id-token")
