import uvicorn

from tempmail_relay.core.app_factory import create_app
from tempmail_relay.core.config import settings

app = create_app()


def run() -> None:
    """Serve the relay with uvicorn.

    Uvicorn's own X-Forwarded-For rewriting is disabled: the client address
    is resolved by the relay with APP_TRUST_PROXY_HOPS.
    """
    uvicorn.run(
        app,
        host=settings.app.host,
        port=settings.app.port,
        proxy_headers=False,
        log_config=None,
    )


if __name__ == "__main__":
    run()
