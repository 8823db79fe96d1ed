"""
FastAPI application factory.

create_app() wires settings, logging, Sentry, MongoDB and the routers. The
Mongo client lives for the lifetime of the app; indexes are (re)created on
every start, which is a no-op once they exist.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppSettings, SentrySettings
from errors import register_error_handlers
from infrastructure.mongo import create_client, ensure_indexes
from routes.health_routes import router as health_router
from routes.permission_routes import router as permission_router
from routes.settings_routes import router as settings_router
from routes.token_routes import router as token_router
from routes.user_routes import router as user_router
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)

_ROUTERS = (health_router, token_router, user_router, permission_router, settings_router)


def _init_sentry(settings: SentrySettings, environment: str) -> None:
    if not settings.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=environment,
        send_default_pii=settings.sentry_send_pii,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        profiles_sample_rate=settings.sentry_profile_sample_rate,
    )


def _mongo_lifespan(settings: AppSettings) -> Callable[[FastAPI], AsyncIterator[None]]:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        client = create_client(settings.db.mongodb_uri)
        app.state.mongo_client = client
        app.state.db = client[settings.db.db_name]
        ensure_indexes(app.state.db)
        log.info(
            "app_started",
            env=settings.env,
            db_name=settings.db.db_name,
            use_transactions=settings.db.use_transactions,
        )
        try:
            yield
        finally:
            client.close()
            log.info("app_stopped")

    return lifespan


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    settings = settings or AppSettings()

    setup_logging(settings.logging, api_key_prefix=settings.security.api_key_prefix)
    _init_sentry(settings.sentry, settings.env)

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=_mongo_lifespan(settings),
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )
    register_error_handlers(app)
    for router in _ROUTERS:
        app.include_router(router)

    return app
