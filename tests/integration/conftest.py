"""
Integration fixtures.

The app under test is assembled like create_app() does it (middleware, error
handlers, routers, wire_services) but its lifespan injects the in-memory
collaborators from tests/conftest.py instead of connecting to Mongo, Redis
and ZeptoMail.
"""

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app import wire_services
from config import AppSettings, DatabaseSettings
from errors import register_error_handlers
from middleware.request_logging import setup_logging_middleware
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from routes.user_routes import router as user_router


def build_test_app(settings: AppSettings, *, users, store, notifier) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        wire_services(
            app,
            settings,
            user_directory=users,
            ephemeral_store=store,
            notifier=notifier,
        )
        yield

    app = FastAPI(lifespan=lifespan)
    setup_logging_middleware(app)
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(user_router)
    return app


@pytest.fixture
def settings(jwt_settings, recovery_settings) -> AppSettings:
    return AppSettings(
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        jwt=jwt_settings,
        recovery=recovery_settings,
        client_url="http://client.local",
        reveal_account_existence=True,
    )


@pytest.fixture
def client(settings, users, store, notifier):
    app = build_test_app(settings, users=users, store=store, notifier=notifier)
    with TestClient(app) as c:
        yield c
