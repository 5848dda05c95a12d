"""
Shared fixtures: in-memory SQLite store, a fake Spotify API behind
``httpx.MockTransport`` and a mocked LLM provider.
"""

from base64 import b64encode
from typing import List
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, parse_qsl, urlsplit

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from config.settings import Settings
from core.context import build_context
from database.models import EarlyAccess, SpotifyUser
from database.session import build_engine
from main import create_app
from utils.llm_providers import BaseLLMProvider

FRONTEND_URL = "https://frontend.test"
CLIENT_ID = "client-id"
CLIENT_SECRET = "client-secret"
GENERATED_PROMPT = "A neon-lit desert at dusk, no text."


class FakeSpotifyAPI:
    """Callable handler for ``httpx.MockTransport`` mimicking Spotify."""

    def __init__(self):
        self.user_id = "U"
        self.access_token = "access-1"
        self.refresh_token = "refresh-1"
        self.refreshed_access_token = "access-refreshed"
        self.artists: List[str] = ["A", "B", "C"]
        self.token_status = 200
        self.profile_status = 200
        self.top_artists_status = 200
        self.requests: List[httpx.Request] = []

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/token":
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            form = parse_qs(request.content.decode())
            if form.get("grant_type") == ["refresh_token"]:
                return httpx.Response(
                    200,
                    json={"access_token": self.refreshed_access_token, "expires_in": 3600},
                )
            return httpx.Response(
                200,
                json={
                    "access_token": self.access_token,
                    "refresh_token": self.refresh_token,
                    "expires_in": 3600,
                    "token_type": "Bearer",
                },
            )

        if path == "/v1/me":
            if self.profile_status != 200:
                return httpx.Response(self.profile_status, json={"error": "nope"})
            return httpx.Response(200, json={"id": self.user_id})

        if path == "/v1/me/top/artists":
            if self.top_artists_status != 200:
                return httpx.Response(self.top_artists_status, json={"error": "expired"})
            return httpx.Response(200, json={"items": [{"name": n} for n in self.artists]})

        return httpx.Response(404)


def basic_auth_header() -> str:
    return "Basic " + b64encode(f"{CLIENT_ID}:{CLIENT_SECRET}".encode()).decode()


def query_of(url: str) -> dict:
    """Query (or fragment) parameters of a redirect location as a flat dict."""
    parts = urlsplit(url)
    return dict(parse_qsl(parts.query or parts.fragment))


def make_settings(**overrides) -> Settings:
    values = dict(
        spotify_client_id=CLIENT_ID,
        spotify_client_secret=CLIENT_SECRET,
        redirect_uri="https://backend.test/callback",
        frontend_url=FRONTEND_URL + "/",
        openrouter_api_key="test-key",
        database_url="sqlite+aiosqlite://",
        session_secret="test-session-secret",
        token_encryption_key="",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def spotify_api() -> FakeSpotifyAPI:
    return FakeSpotifyAPI()


@pytest.fixture
def llm():
    provider = MagicMock(spec=BaseLLMProvider)
    provider.generate = AsyncMock(return_value=GENERATED_PROMPT)
    provider.aclose = AsyncMock()
    return provider


@pytest.fixture
async def context(settings, spotify_api, llm):
    engine = build_engine(
        settings.database_url,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(spotify_api))
    ctx = build_context(settings, engine=engine, http_client=http_client, llm=llm)
    await ctx.startup()
    yield ctx
    await ctx.aclose()


@pytest.fixture
async def client(context):
    app = create_app(context=context)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


async def count_rows(context, model) -> int:
    async with context.session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return int(result.scalar_one())


async def count_users(context) -> int:
    return await count_rows(context, SpotifyUser)


async def count_early_access(context) -> int:
    return await count_rows(context, EarlyAccess)


async def login_and_get_state(client: httpx.AsyncClient) -> str:
    resp = await client.get("/login")
    assert resp.status_code == 302
    return query_of(resp.headers["location"])["state"]


async def complete_login(client: httpx.AsyncClient, code: str = "auth-code") -> httpx.Response:
    state = await login_and_get_state(client)
    return await client.get("/callback", params={"code": code, "state": state})


async def drop_table(context, model) -> None:
    async with context.engine.begin() as conn:
        await conn.run_sync(model.__table__.drop)
