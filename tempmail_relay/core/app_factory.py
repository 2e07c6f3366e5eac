from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
the injected services: upstream client and rate limiters) so tests can
build isolated apps with fake upstreams and clocks.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tempmail_relay.adapters.mail_provider.base import AbstractMailProvider
from tempmail_relay.adapters.mail_provider.factory import create_mail_provider
from tempmail_relay.api.routes import account_router, domains_router, health_router, messages_router
from tempmail_relay.core.config import Settings, settings as default_settings
from tempmail_relay.core.exception_handlers import setup_exception_handlers
from tempmail_relay.core.logging import configure_logging
from tempmail_relay.core.middleware import request_id_middleware
from tempmail_relay.core.openapi import apply_openapi_customizations
from tempmail_relay.core.rate_limit import RateLimiterRegistry

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

EXPOSED_HEADERS = [
    "RateLimit-Limit",
    "RateLimit-Remaining",
    "RateLimit-Reset",
    "Retry-After",
    "X-Request-ID",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "app.startup",
        extra={
            "upstream_base_url": app.state.settings.upstream.base_url,
            "frontend_url": app.state.settings.app.frontend_url,
            "trust_proxy_hops": app.state.settings.app.trust_proxy_hops,
        },
    )
    try:
        yield
    finally:
        await app.state.mail_provider.aclose()
        logger.info("app.shutdown")


def create_app(
    settings: Settings | None = None,
    *,
    mail_provider: AbstractMailProvider | None = None,
    clock: Callable[[], float] | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to use; defaults to the environment-loaded ones.
        mail_provider: Upstream client; built from settings when omitted.
        clock: Time source for the rate limiters (tests pass a fake clock).
        configure_logs: Whether to (re)configure root logging.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(cfg.log)

    app = FastAPI(
        title="Temp Mail Relay",
        description=(
            "Relay between a browser client and a disposable-email provider. "
            "Creates mailboxes, lists domains and reads or deletes messages, "
            "with per-client rate limiting and a single allowed CORS origin."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    # Injected services
    app.state.settings = cfg
    app.state.started_at = time.monotonic()
    app.state.mail_provider = mail_provider or create_mail_provider(cfg.upstream)
    app.state.rate_limiters = RateLimiterRegistry.from_settings(cfg.app, clock=clock)

    # Middleware (the last one added is the outermost)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cfg.app.frontend_url] if cfg.app.frontend_url else [],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", cfg.log.request_id_header],
        expose_headers=EXPOSED_HEADERS,
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(domains_router, prefix=API_PREFIX)
    app.include_router(account_router, prefix=API_PREFIX)
    app.include_router(messages_router, prefix=API_PREFIX)

    # OpenAPI customizations (security scheme, tags)
    apply_openapi_customizations(app)

    return app
