"""
Process-wide application context.

Everything that outlives a single request (settings, DB pool, HTTP client,
Spotify connector, prompt generator, token cipher) is built once at startup,
hung on ``app.state.context`` and handed to routes through dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from config.settings import Settings
from connectors.encryption import TokenCipher
from connectors.spotify import SpotifyConnector
from core.prompt_generator import PromptGenerator
from database.session import build_engine, build_session_factory, create_tables
from utils.llm_providers import BaseLLMProvider, get_llm_provider

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    http_client: httpx.AsyncClient
    spotify: SpotifyConnector
    llm: BaseLLMProvider
    prompt_generator: PromptGenerator
    cipher: TokenCipher

    async def startup(self) -> None:
        if not self.spotify.is_configured():
            logger.warning("SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET not set — login will fail")
        if self.settings.auto_create_tables:
            await create_tables(self.engine)
            logger.info("Database tables ready")

    async def aclose(self) -> None:
        await self.http_client.aclose()
        await self.llm.aclose()
        await self.engine.dispose()
        logger.info("Application context closed")


def build_context(
    settings: Settings,
    *,
    engine: AsyncEngine | None = None,
    http_client: httpx.AsyncClient | None = None,
    llm: BaseLLMProvider | None = None,
) -> AppContext:
    """
    Assemble an ``AppContext`` from settings.

    Any collaborator passed in explicitly is used as-is instead of being
    built from configuration.
    """
    engine = engine or build_engine(settings.database_url)
    http_client = http_client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    llm = llm or get_llm_provider(
        settings.prompt_model_provider,
        api_key=settings.openrouter_api_key,
        default_model=settings.prompt_model,
        base_url=settings.openrouter_base_url,
        timeout=settings.http_timeout_seconds,
    )
    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=build_session_factory(engine),
        http_client=http_client,
        spotify=SpotifyConnector(settings, http_client),
        llm=llm,
        prompt_generator=PromptGenerator(llm, temperature=settings.prompt_temperature),
        cipher=TokenCipher(settings.token_encryption_key),
    )
