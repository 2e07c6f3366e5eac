from __future__ import annotations

from tempmail_relay.api.routes.account import router as account_router
from tempmail_relay.api.routes.domains import router as domains_router
from tempmail_relay.api.routes.health import router as health_router
from tempmail_relay.api.routes.messages import router as messages_router

__all__ = ["account_router", "domains_router", "health_router", "messages_router"]
