"""
FastAPI application factory.
create_app() is the single entry point for building the app.

Startup builds every component once, by hand, and stores it on app.state:
collaborators first (user directory, ephemeral store, notifier), then the
token issuer and the services that take them as constructor arguments.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.cache.ephemeral_store import EphemeralStore
from infrastructure.cache.redis_client import build_ephemeral_store
from infrastructure.email.protocol import Notifier
from infrastructure.email.zeptomail import ZeptoMailNotifier
from infrastructure.http_client import HttpClient
from infrastructure.persistence.user_directory import (
    MongoUserDirectory,
    UserDirectory,
)
from middleware.request_logging import setup_logging_middleware
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from routes.user_routes import router as user_router
from services.auth.access_guard import AccessGuard
from services.auth.identity_service import IdentityService
from services.auth.recovery_flow import RecoveryFlow
from services.auth.token_issuer import TokenIssuer
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def wire_services(
    app: FastAPI,
    settings: AppSettings,
    *,
    user_directory: UserDirectory,
    ephemeral_store: EphemeralStore,
    notifier: Notifier,
) -> None:
    """Construct the auth components from their collaborators onto app.state."""
    token_issuer = TokenIssuer(settings.jwt)

    app.state.settings = settings
    app.state.user_directory = user_directory
    app.state.ephemeral_store = ephemeral_store
    app.state.notifier = notifier
    app.state.token_issuer = token_issuer
    app.state.identity_service = IdentityService(
        user_directory,
        token_issuer,
        notifier,
        client_url=settings.client_url,
        reveal_account_existence=settings.reveal_account_existence,
    )
    app.state.recovery_flow = RecoveryFlow(
        ephemeral_store,
        user_directory,
        notifier,
        settings=settings.recovery,
        reveal_account_existence=settings.reveal_account_existence,
    )
    app.state.access_guard = AccessGuard(token_issuer, user_directory)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, env=settings.env)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            environment=settings.env,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(settings.db.mongodb_uri)
        user_directory = MongoUserDirectory(mongo_client[settings.db.db_name])
        await user_directory.ensure_indexes()

        ephemeral_store, redis_client = await build_ephemeral_store(
            settings.redis.redis_uri
        )

        http_client = HttpClient(timeout=settings.email.send_timeout_seconds)
        notifier = ZeptoMailNotifier(
            settings.email, http_client, app_name=settings.app_name
        )

        wire_services(
            app,
            settings,
            user_directory=user_directory,
            ephemeral_store=ephemeral_store,
            notifier=notifier,
        )
        log.info("app_started", env=settings.env)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_logging_middleware(app)

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(user_router)

    return app
