"""
FastAPI dependencies (shared across routes).

Routes never import process-wide objects directly; they ask for them here.
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings
from connectors.encryption import TokenCipher
from connectors.spotify import SpotifyConnector
from core.context import AppContext
from core.prompt_generator import PromptGenerator


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_settings(ctx: AppContext = Depends(get_context)) -> Settings:
    return ctx.settings


def get_spotify(ctx: AppContext = Depends(get_context)) -> SpotifyConnector:
    return ctx.spotify


def get_cipher(ctx: AppContext = Depends(get_context)) -> TokenCipher:
    return ctx.cipher


def get_prompt_generator(ctx: AppContext = Depends(get_context)) -> PromptGenerator:
    return ctx.prompt_generator


async def db_session(
    ctx: AppContext = Depends(get_context),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session; rolled back if the route raises."""
    async with ctx.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
