"""
FastAPI application factory: shop, admin, Slack auth, catalog import, health and metrics.
"""
from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker

from rewards.api.middleware import SlackSessionMiddleware
from rewards.api.routes import admin, auth, health, import_shop, shop
from rewards.core.config import Settings, check_sessions_secret, get_settings
from rewards.core.errors import ConfigError
from rewards.core.logging import configure_logging
from rewards.db.session import get_sessionmaker
from rewards.utils.metrics import router as metrics_router


def create_app(settings: Settings | None = None, session_factory: sessionmaker | None = None) -> FastAPI:
    settings = settings or get_settings()
    settings.require("sessions_secret")
    try:
        check_sessions_secret(settings.sessions_secret)
    except ValueError as e:
        raise ConfigError(str(e)) from e

    app = FastAPI(
        title="Rewards Shop API",
        description="Token shop, order admin and catalog import",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.session_factory = session_factory or get_sessionmaker()

    app.add_middleware(SlackSessionMiddleware)

    # Routers
    app.include_router(health.router, tags=["health"])
    app.include_router(auth.router)
    app.include_router(shop.router)
    app.include_router(admin.router)
    app.include_router(import_shop.router)
    app.include_router(metrics_router)
    return app


def create_configured_app() -> FastAPI:
    settings = get_settings().require("sessions_secret", "slack_client_id", "slack_client_secret")
    configure_logging(settings)
    return create_app(settings)
