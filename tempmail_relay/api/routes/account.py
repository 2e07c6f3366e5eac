from __future__ import annotations

from dataclasses import replace

from fastapi import APIRouter, Body, Depends

from tempmail_relay.api.deps import get_account_service
from tempmail_relay.core.errors import UpstreamAppError
from tempmail_relay.core.rate_limit import RouteClass, rate_limit
from tempmail_relay.schemas.account import AccountCreateRequest, AccountCreateResponse
from tempmail_relay.schemas.common import ErrorResponse
from tempmail_relay.services.account_service import AccountService

router = APIRouter(tags=["Account"])


@router.post(
    "/account",
    response_model=AccountCreateResponse,
    dependencies=[Depends(rate_limit(RouteClass.ACCOUNT))],
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def create_account(
    payload: AccountCreateRequest | None = Body(default=None),
    service: AccountService = Depends(get_account_service),
) -> AccountCreateResponse:
    """Create a disposable mailbox and return its address and bearer token.

    Steps: fetch the provider's domains, register ``localPart@first-domain``
    (random local part when omitted) with a random password, then exchange
    the credentials for a token. The password is discarded.

    Raises:
        UpstreamAppError: 502 "No domains available" when the provider lists
            no domain; otherwise the failing step's upstream status and body.
    """
    local_part = payload.local_part if payload else None
    try:
        return await service.create_account(local_part)
    except UpstreamAppError as exc:
        if exc.code == "no_domains":
            raise
        raise replace(exc, message="Account creation failed") from exc
