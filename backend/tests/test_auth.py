"""Tests for registration, login, tokens, password reset and Google login."""
import re
from urllib.parse import parse_qs, urlparse

from conftest import register_user


def _state_cookie(response) -> str:
    match = re.search(r"oauth_state=([^;]+)", response.headers["set-cookie"])
    assert match, response.headers["set-cookie"]
    return match.group(1)


class TestRegisterAndLogin:
    """Password accounts."""

    async def test_register_returns_user_and_tokens(self, client):
        r = await client.post(
            "/api/auth/register",
            json={"name": "Dana Scully", "username": "Dana", "email": "Dana@Example.com", "password": "trustno1"},
        )
        assert r.status_code == 201
        body = r.json()
        assert body["user"]["username"] == "dana"
        assert body["user"]["email"] == "dana@example.com"
        assert body["token_type"] == "bearer"
        assert body["access_token"] and body["refresh_token"]
        assert "password_hash" not in body["user"]

    async def test_duplicate_email_is_conflict(self, client, alice):
        r = await client.post(
            "/api/auth/register",
            json={"name": "Other", "username": "other", "email": "alice@example.com", "password": "secret123"},
        )
        assert r.status_code == 409

    async def test_duplicate_username_is_conflict(self, client, alice):
        r = await client.post(
            "/api/auth/register",
            json={"name": "Other", "username": "ALICE", "email": "other@example.com", "password": "secret123"},
        )
        assert r.status_code == 409

    async def test_short_password_rejected(self, client):
        r = await client.post(
            "/api/auth/register",
            json={"name": "Eve", "username": "eve", "email": "eve@example.com", "password": "123"},
        )
        assert r.status_code == 400

    async def test_login_with_username_or_email(self, client, alice):
        for identifier in ("alice", "ALICE@example.com"):
            r = await client.post("/api/auth/login", json={"username_or_email": identifier, "password": "secret123"})
            assert r.status_code == 200, identifier
            assert r.json()["user"]["id"] == alice["id"]

    async def test_wrong_password_is_unauthenticated(self, client, alice):
        r = await client.post("/api/auth/login", json={"username_or_email": "alice", "password": "nope-nope"})
        assert r.status_code == 401

    async def test_unknown_user_is_unauthenticated(self, client):
        r = await client.post("/api/auth/login", json={"username_or_email": "ghost", "password": "secret123"})
        assert r.status_code == 401


class TestTokens:
    """Access and refresh tokens."""

    async def test_me_requires_token(self, client):
        r = await client.get("/api/auth/me")
        assert r.status_code == 401

    async def test_me_returns_current_user(self, client, alice):
        r = await client.get("/api/auth/me", headers=alice["headers"])
        assert r.status_code == 200
        assert r.json()["username"] == "alice"

    async def test_refresh_rotates_tokens(self, client, alice):
        r = await client.post("/api/auth/refresh", json={"refresh_token": alice["refresh_token"]})
        assert r.status_code == 200
        new_access = r.json()["access_token"]
        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_access}"})
        assert me.status_code == 200

    async def test_access_token_is_not_a_refresh_token(self, client, alice):
        r = await client.post("/api/auth/refresh", json={"refresh_token": alice["access_token"]})
        assert r.status_code == 401

    async def test_refresh_token_cannot_authenticate_requests(self, client, alice):
        r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {alice['refresh_token']}"})
        assert r.status_code == 401


class TestPasswordReset:
    """Forgot / reset password."""

    async def test_reset_flow(self, client, alice, mailer):
        r = await client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
        assert r.status_code == 200
        assert r.json()["message"] == "Reset link sent to your email."
        assert len(mailer.sent) == 1
        url = mailer.sent[0]["url"]
        assert url.startswith("http://localhost:5173/reset-password/")
        token = url.rsplit("/", 1)[-1]

        r = await client.post(f"/api/auth/reset-password/{token}", json={"password": "brand-new-pw"})
        assert r.status_code == 200
        assert r.json()["message"] == "Password reset successful"

        old = await client.post("/api/auth/login", json={"username_or_email": "alice", "password": "secret123"})
        assert old.status_code == 401
        new = await client.post("/api/auth/login", json={"username_or_email": "alice", "password": "brand-new-pw"})
        assert new.status_code == 200

    async def test_reset_token_is_single_use(self, client, alice, mailer):
        await client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
        token = mailer.sent[0]["url"].rsplit("/", 1)[-1]
        first = await client.post(f"/api/auth/reset-password/{token}", json={"password": "brand-new-pw"})
        assert first.status_code == 200
        second = await client.post(f"/api/auth/reset-password/{token}", json={"password": "another-pw"})
        assert second.status_code == 400
        assert second.json()["detail"] == "Invalid or expired token"

    async def test_unknown_email_is_not_found(self, client, mailer):
        r = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
        assert r.status_code == 404
        assert mailer.sent == []

    async def test_bogus_token_rejected(self, client, alice):
        r = await client.post("/api/auth/reset-password/not-a-token", json={"password": "whatever1"})
        assert r.status_code == 400


class TestGoogleLogin:
    """Federated login through the OAuth callback."""

    async def test_redirects_to_consent_with_state_cookie(self, client):
        r = await client.get("/api/auth/google")
        assert r.status_code == 302
        state = _state_cookie(r)
        assert parse_qs(urlparse(r.headers["location"]).query)["state"] == [state]

    async def test_callback_creates_account_and_redirects_with_token(self, client, google):
        start = await client.get("/api/auth/google")
        state = _state_cookie(start)

        r = await client.get(
            "/api/auth/google/callback",
            params={"code": "auth-code", "state": state},
            headers={"Cookie": f"oauth_state={state}"},
        )
        assert r.status_code == 302
        location = r.headers["location"]
        assert location.startswith("http://localhost:5173/oauth-success?token=")
        token = parse_qs(urlparse(location).query)["token"][0]
        assert google.codes == ["auth-code"]

        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["username"] == "janedoe"
        assert me.json()["email"] == "jane.doe@gmail.com"

    async def test_second_login_reuses_account_and_handles_collisions(self, client, google):
        await register_user(client, "janedoe")

        async def login() -> str:
            start = await client.get("/api/auth/google")
            state = _state_cookie(start)
            r = await client.get(
                "/api/auth/google/callback",
                params={"code": "c", "state": state},
                headers={"Cookie": f"oauth_state={state}"},
            )
            token = parse_qs(urlparse(r.headers["location"]).query)["token"][0]
            me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
            return me.json()

        first = await login()
        second = await login()
        assert first["username"] == "janedoe1"
        assert second["id"] == first["id"]

    async def test_state_mismatch_rejected(self, client):
        r = await client.get(
            "/api/auth/google/callback",
            params={"code": "c", "state": "forged"},
            headers={"Cookie": "oauth_state=expected"},
        )
        assert r.status_code == 400

    async def test_google_email_matching_password_account_logs_into_it(self, client, google, alice):
        google.profile = google.profile.model_copy(update={"email": "alice@example.com"})
        start = await client.get("/api/auth/google")
        state = _state_cookie(start)
        r = await client.get(
            "/api/auth/google/callback",
            params={"code": "c", "state": state},
            headers={"Cookie": f"oauth_state={state}"},
        )
        token = parse_qs(urlparse(r.headers["location"]).query)["token"][0]
        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["id"] == alice["id"]
