from fastapi import Depends, Request

from tempmail_relay.adapters.mail_provider.base import AbstractMailProvider
from tempmail_relay.services.account_service import AccountService


def get_mail_provider(request: Request) -> AbstractMailProvider:
    return request.app.state.mail_provider


def get_account_service(
    provider: AbstractMailProvider = Depends(get_mail_provider),
) -> AccountService:
    return AccountService(provider)
