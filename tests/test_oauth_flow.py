"""
Tests for /login and /callback — state verification, code exchange and
the credential upsert.
"""

import pytest
from cryptography.fernet import Fernet
from sqlalchemy.exc import OperationalError

from conftest import (
    CLIENT_ID,
    FRONTEND_URL,
    basic_auth_header,
    complete_login,
    count_users,
    login_and_get_state,
    make_settings,
    query_of,
)
from connectors.token_manager import get_access_token
from database.helpers import get_spotify_user


class TestLogin:
    @pytest.mark.asyncio
    async def test_redirects_to_authorize_endpoint(self, client):
        resp = await client.get("/login")

        assert resp.status_code == 302
        location = resp.headers["location"]
        assert location.startswith("https://accounts.spotify.com/authorize?")
        params = query_of(location)
        assert params["response_type"] == "code"
        assert params["client_id"] == CLIENT_ID
        assert params["scope"] == "user-read-private user-read-email user-top-read"
        assert params["redirect_uri"] == "https://backend.test/callback"

    @pytest.mark.asyncio
    async def test_state_is_sixteen_alphanumerics(self, client):
        state = await login_and_get_state(client)
        assert len(state) == 16
        assert state.isalnum()

    @pytest.mark.asyncio
    async def test_each_login_gets_a_new_state(self, client):
        first = await login_and_get_state(client)
        second = await login_and_get_state(client)
        assert first != second

    @pytest.mark.asyncio
    async def test_sets_session_cookie(self, client):
        resp = await client.get("/login")
        assert "session" in resp.cookies


class TestCallbackSuccess:
    @pytest.mark.asyncio
    async def test_stores_credentials_and_redirects(self, client, context, spotify_api):
        resp = await complete_login(client)

        assert resp.status_code == 302
        assert resp.headers["location"] == f"{FRONTEND_URL}/home?user_id=U&auth_success=true"
        assert await count_users(context) == 1

        async with context.session_factory() as session:
            user = await get_spotify_user(session, "U")
        assert user.access_token == "access-1"
        assert user.refresh_token == "refresh-1"
        assert user.created_at is not None

    @pytest.mark.asyncio
    async def test_token_exchange_uses_basic_auth_and_code(self, client, spotify_api):
        await complete_login(client, code="the-code")

        (token_call,) = spotify_api.calls_to("/api/token")
        assert token_call.headers["authorization"] == basic_auth_header()
        body = query_of("?" + token_call.content.decode())
        assert body == {
            "code": "the-code",
            "redirect_uri": "https://backend.test/callback",
            "grant_type": "authorization_code",
        }
        (me_call,) = spotify_api.calls_to("/v1/me")
        assert me_call.headers["authorization"] == "Bearer access-1"

    @pytest.mark.asyncio
    async def test_second_login_updates_in_place(self, client, context, spotify_api):
        await complete_login(client)
        spotify_api.access_token = "access-2"
        spotify_api.refresh_token = "refresh-2"
        await complete_login(client)

        assert await count_users(context) == 1
        async with context.session_factory() as session:
            user = await get_spotify_user(session, "U")
        assert user.access_token == "access-2"
        assert user.refresh_token == "refresh-2"

    @pytest.mark.asyncio
    async def test_state_cannot_be_replayed(self, client, spotify_api):
        state = await login_and_get_state(client)
        first = await client.get("/callback", params={"code": "c", "state": state})
        replay = await client.get("/callback", params={"code": "c", "state": state})

        assert "auth_success" in query_of(first.headers["location"])
        assert query_of(replay.headers["location"]) == {"error": "state_mismatch"}
        assert len(spotify_api.calls_to("/api/token")) == 1


class TestCallbackStateMismatch:
    @pytest.mark.asyncio
    async def test_wrong_state(self, client, context, spotify_api):
        await login_and_get_state(client)
        resp = await client.get("/callback", params={"code": "c", "state": "forged"})

        assert resp.status_code == 302
        assert resp.headers["location"] == f"{FRONTEND_URL}/#error=state_mismatch"
        assert await count_users(context) == 0
        assert spotify_api.requests == []

    @pytest.mark.asyncio
    async def test_missing_state(self, client, context, spotify_api):
        await login_and_get_state(client)
        resp = await client.get("/callback", params={"code": "c"})

        assert query_of(resp.headers["location"]) == {"error": "state_mismatch"}
        assert await count_users(context) == 0
        assert spotify_api.requests == []

    @pytest.mark.asyncio
    async def test_no_login_session(self, client, context):
        resp = await client.get("/callback", params={"code": "c", "state": "abcdefghijklmnop"})

        assert query_of(resp.headers["location"]) == {"error": "state_mismatch"}
        assert await count_users(context) == 0


class TestCallbackAuthenticationError:
    @pytest.mark.asyncio
    async def test_token_exchange_failure(self, client, context, spotify_api):
        spotify_api.token_status = 400
        resp = await complete_login(client)

        assert resp.status_code == 302
        assert resp.headers["location"] == f"{FRONTEND_URL}/home?error=authentication_error"
        assert await count_users(context) == 0

    @pytest.mark.asyncio
    async def test_profile_failure(self, client, context, spotify_api):
        spotify_api.profile_status = 500
        resp = await complete_login(client)

        assert query_of(resp.headers["location"]) == {"error": "authentication_error"}
        assert await count_users(context) == 0

    @pytest.mark.asyncio
    async def test_store_failure(self, client, context, monkeypatch):
        async def failing_upsert(*args, **kwargs):
            raise OperationalError("INSERT INTO spotify_users", {}, Exception("database is locked"))

        monkeypatch.setattr("connectors.token_manager.upsert_spotify_user", failing_upsert)
        resp = await complete_login(client)

        assert resp.status_code == 302
        assert resp.headers["location"] == f"{FRONTEND_URL}/home?error=authentication_error"
        assert await count_users(context) == 0

    @pytest.mark.asyncio
    async def test_provider_denied_consent(self, client, context, spotify_api):
        state = await login_and_get_state(client)
        resp = await client.get("/callback", params={"error": "access_denied", "state": state})

        assert query_of(resp.headers["location"]) == {"error": "authentication_error"}
        assert spotify_api.requests == []


class TestEncryptedStorage:
    @pytest.fixture
    def settings(self):
        return make_settings(token_encryption_key=Fernet.generate_key().decode())

    @pytest.mark.asyncio
    async def test_tokens_encrypted_at_rest_but_returned_verbatim(self, client, context):
        await complete_login(client)

        async with context.session_factory() as session:
            user = await get_spotify_user(session, "U")
            assert user.access_token != "access-1"
            assert await get_access_token(session, context.cipher, "U") == "access-1"

        resp = await client.post("/get_access_token", json={"user_id": "U"})
        assert resp.json() == {"access_token": "access-1"}
