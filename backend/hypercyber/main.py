"""FastAPI application entry point."""
from __future__ import annotations

import logging
from datetime import timedelta

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .auth import router as auth_router
from .config import Settings, configure_logging, get_settings
from .database import create_engine, create_schema, create_session_factory
from .errors import register_exception_handlers
from .routers.catalogue import router as catalogue_router
from .routers.entities import router as entities_router
from .routers.rgpd import legacy_router as rgpd_legacy_router
from .routers.rgpd import router as rgpd_router
from .storage import build_storage
from .tokens import TokenService

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
OIDC_TIMEOUT = httpx.Timeout(10.0)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application and every shared service it hands to handlers."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="HyperCyber Compliance Backend", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    engine = create_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.token_service = TokenService(
        settings.jwt_secret, timedelta(seconds=settings.jwt_expiration)
    )
    app.state.storage = build_storage(settings)
    app.state.http_client = httpx.AsyncClient(timeout=OIDC_TIMEOUT)

    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(entities_router, prefix=API_PREFIX)
    app.include_router(rgpd_router, prefix=API_PREFIX)
    app.include_router(rgpd_legacy_router, prefix=API_PREFIX)
    app.include_router(catalogue_router, prefix=API_PREFIX)

    @app.on_event("startup")
    async def on_startup() -> None:
        """Ensure database tables exist."""

        await create_schema(engine)
        logger.info("HyperCyber backend ready on %s:%s", settings.host, settings.port)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.http_client.aclose()
        await engine.dispose()

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        """Simple readiness probe for uptime checks."""

        return {"status": "ok"}

    return app
