"""Mail provider adapter layer - abstracts over the disposable-email API."""

from tempmail_relay.adapters.mail_provider.base import AbstractMailProvider
from tempmail_relay.adapters.mail_provider.factory import create_mail_provider
from tempmail_relay.adapters.mail_provider.mailtm_client import MailTmClient

__all__ = [
    "AbstractMailProvider",
    "MailTmClient",
    "create_mail_provider",
]
