"""
Mixer backend — application entry point.
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from fastapi import FastAPI

from api.errors import register_exception_handlers
from api.middleware import register_middleware
from api.routes import router as api_router
from config.settings import Settings, load_settings
from connectors.routes import router as oauth_router
from core.context import AppContext, build_context

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        stream=sys.stdout,
    )
    for _noisy in ("httpcore", "httpx", "openai", "aiosqlite"):
        logging.getLogger(_noisy).setLevel(logging.WARNING)


def create_app(
    settings: Settings | None = None,
    *,
    context: AppContext | None = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    ``context`` lets callers (tests) supply pre-built collaborators; when
    omitted it is built from ``settings`` on startup.
    """
    settings = settings or (context.settings if context else load_settings())
    configure_logging(settings)

    app = FastAPI(
        title="Mixer",
        version="1.0.0",
        description="Spotify login, credential storage and top-artist poster prompts.",
    )
    app.state.context = context

    register_middleware(app, settings)
    register_exception_handlers(app)

    # Routes
    app.include_router(oauth_router)
    app.include_router(api_router)

    @app.on_event("startup")
    async def on_startup():
        settings.warn_if_incomplete()
        if app.state.context is None:
            app.state.context = build_context(settings)
        await app.state.context.startup()
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        if app.state.context is not None:
            await app.state.context.aclose()
            app.state.context = None

    return app


if __name__ == "__main__":
    _settings = load_settings()
    uvicorn.run(
        create_app(_settings),
        host=_settings.host,
        port=_settings.port,
        log_level="debug" if _settings.debug else "info",
    )
