from shoplist.config import settings

PASSWORD = "Password1"

AUTH = "/api/v1/auth"


def register(client, email="a@b.com", name="Ann", password=PASSWORD):
    return client.post(f"{AUTH}/register", json={"email": email, "name": name, "password": password})


def login(client, email="a@b.com", password=PASSWORD):
    return client.post(f"{AUTH}/login", json={"email": email, "password": password})


def error_code(response):
    return response.json()["error"]["code"]


def test_register_login_refresh_and_reuse(client):
    created = register(client)
    assert created.status_code == 201
    body = created.json()
    assert body["email"] == "a@b.com"
    assert body["name"] == "Ann"
    assert body["provider"] == "LOCAL"
    assert body["roles"] == ["USER"]
    assert "password" not in body and "passwordHash" not in body

    logged_in = login(client)
    assert logged_in.status_code == 200
    tokens = logged_in.json()
    assert tokens["tokenType"] == "Bearer"
    assert tokens["expiresIn"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    original = tokens["refreshToken"]

    wrong = login(client, password="WrongPass1")
    assert wrong.status_code == 401
    assert error_code(wrong) == "INVALID_CREDENTIALS"
    assert wrong.headers["WWW-Authenticate"] == "Bearer"

    rotated = client.post(f"{AUTH}/refresh", json={"refreshToken": original})
    assert rotated.status_code == 200
    assert rotated.json()["refreshToken"] != original

    replay = client.post(f"{AUTH}/refresh", json={"refreshToken": original})
    assert replay.status_code == 401
    assert error_code(replay) == "TOKEN_ALREADY_USED"

    # Reuse revoked the token issued by the legitimate rotation too
    successor = client.post(f"{AUTH}/refresh", json={"refreshToken": rotated.json()["refreshToken"]})
    assert successor.status_code == 401
    assert error_code(successor) == "TOKEN_REVOKED"


def test_register_duplicate_email(client):
    register(client)
    duplicate = register(client, email="A@B.com")
    assert duplicate.status_code == 409
    assert error_code(duplicate) == "EMAIL_TAKEN"
    assert duplicate.json()["error"]["field"] == "email"


def test_register_validation_errors(client):
    weak = register(client, password="password")
    assert weak.status_code == 422
    assert error_code(weak) == "VALIDATION_ERROR"
    assert weak.json()["error"]["details"][0]["field"] == "password"

    assert register(client, email="not-an-email").status_code == 422
    assert register(client, name="   ").status_code == 422


def test_login_unknown_email_matches_wrong_password(client):
    register(client)
    unknown = login(client, email="nobody@b.com")
    wrong = login(client, password="WrongPass1")
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


def test_login_sets_http_only_refresh_cookie(client):
    register(client)
    response = login(client)
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{settings.REFRESH_COOKIE_NAME}={response.json()['refreshToken']}")
    assert "HttpOnly" in cookie
    assert f"Path={settings.REFRESH_COOKIE_PATH}" in cookie


def test_refresh_from_cookie(client):
    register(client)
    first = login(client).json()["refreshToken"]

    rotated = client.post(f"{AUTH}/refresh")
    assert rotated.status_code == 200
    second = rotated.json()["refreshToken"]
    assert second != first

    # The cookie jar now holds the successor
    again = client.post(f"{AUTH}/refresh")
    assert again.status_code == 200
    assert again.json()["refreshToken"] not in (first, second)


def test_refresh_without_token(client):
    response = client.post(f"{AUTH}/refresh", json={})
    assert response.status_code == 422
    assert error_code(response) == "VALIDATION_ERROR"
    assert response.json()["error"]["field"] == "refreshToken"


def test_refresh_unknown_token(client):
    response = client.post(f"{AUTH}/refresh", json={"refreshToken": "never-issued-token-value"})
    assert response.status_code == 401
    assert error_code(response) == "TOKEN_NOT_FOUND"


def test_cookie_only_mode_keeps_refresh_token_out_of_body(client, monkeypatch):
    monkeypatch.setattr(settings, "REFRESH_COOKIE_ONLY", True)
    register(client)
    response = login(client)

    assert response.status_code == 200
    assert "refreshToken" not in response.json()
    assert settings.REFRESH_COOKIE_NAME in response.headers["set-cookie"]


def test_logout_revokes_and_clears_cookie(client):
    register(client)
    raw = login(client).json()["refreshToken"]

    response = client.post(f"{AUTH}/logout", json={"refreshToken": raw})
    assert response.status_code == 204
    assert response.content == b""
    assert f'{settings.REFRESH_COOKIE_NAME}=""' in response.headers["set-cookie"]

    again = client.post(f"{AUTH}/logout", json={"refreshToken": raw})
    assert again.status_code == 204

    refreshed = client.post(f"{AUTH}/refresh", json={"refreshToken": raw})
    assert refreshed.status_code == 401
    assert error_code(refreshed) == "TOKEN_REVOKED"


def test_google_login(client, google):
    google.add("google-id-token", "bob@gmail.com", "Bob")

    response = client.post(f"{AUTH}/google", json={"idToken": "google-id-token"})
    assert response.status_code == 200
    access = response.json()["accessToken"]

    me = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {access}"})
    assert me.json()["data"]["provider"] == "GOOGLE"
    assert me.json()["data"]["email"] == "bob@gmail.com"


def test_google_login_with_rejected_token(client):
    response = client.post(f"{AUTH}/google", json={"idToken": "forged"})
    assert response.status_code == 401
    assert error_code(response) == "INVALID_EXTERNAL_TOKEN"


def test_google_login_requires_id_token(client):
    response = client.post(f"{AUTH}/google", json={"idToken": "  "})
    assert response.status_code == 422
