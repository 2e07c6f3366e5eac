"""Factory for the upstream mail provider client."""

from tempmail_relay.adapters.mail_provider.base import AbstractMailProvider
from tempmail_relay.adapters.mail_provider.mailtm_client import MailTmClient
from tempmail_relay.core.config import UpstreamSettings, settings
from tempmail_relay.core.errors import ValidationAppError


def create_mail_provider(upstream: UpstreamSettings | None = None) -> AbstractMailProvider:
    """Instantiate the provider client from configuration.

    Args:
        upstream: Upstream settings; defaults to the global settings.

    Returns:
        AbstractMailProvider: Configured client instance.

    Raises:
        ValidationAppError: If the base URL is not an http(s) URL.
    """
    cfg = upstream or settings.upstream

    if not cfg.base_url.startswith(("http://", "https://")):
        raise ValidationAppError(
            code="upstream_invalid_base_url",
            message=f"UPSTREAM_BASE_URL must be an http(s) URL, got '{cfg.base_url}'",
        )

    return MailTmClient(
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout_seconds,
    )
