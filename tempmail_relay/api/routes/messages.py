from __future__ import annotations

from dataclasses import replace
from typing import Any

from fastapi import APIRouter, Depends, Query

from tempmail_relay.adapters.mail_provider.base import AbstractMailProvider
from tempmail_relay.api.deps import get_mail_provider
from tempmail_relay.core.auth import require_bearer_token
from tempmail_relay.core.errors import UpstreamAppError
from tempmail_relay.core.rate_limit import RouteClass, rate_limit
from tempmail_relay.schemas.common import DeleteMessageResponse, ErrorResponse

# Rate limiting runs before the credential check: router dependencies are
# resolved ahead of endpoint parameters.
router = APIRouter(
    tags=["Messages"],
    dependencies=[Depends(rate_limit(RouteClass.GENERAL))],
    responses={
        401: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)


@router.get("/messages")
async def list_messages(
    page: int | None = Query(default=None, ge=1, description="Provider page number"),
    token: str = Depends(require_bearer_token),
    provider: AbstractMailProvider = Depends(get_mail_provider),
) -> Any:
    """List the messages of the mailbox owning the bearer token."""
    try:
        return await provider.list_messages(token, page=page)
    except UpstreamAppError as exc:
        raise replace(exc, message="Failed to fetch messages") from exc


@router.get("/messages/{message_id}")
async def get_message(
    message_id: str,
    token: str = Depends(require_bearer_token),
    provider: AbstractMailProvider = Depends(get_mail_provider),
) -> Any:
    """Return one message, body included, exactly as the provider sends it."""
    try:
        return await provider.get_message(token, message_id)
    except UpstreamAppError as exc:
        raise replace(exc, message="Failed to fetch message") from exc


@router.delete("/messages/{message_id}", response_model=DeleteMessageResponse)
async def delete_message(
    message_id: str,
    token: str = Depends(require_bearer_token),
    provider: AbstractMailProvider = Depends(get_mail_provider),
) -> DeleteMessageResponse:
    try:
        await provider.delete_message(token, message_id)
    except UpstreamAppError as exc:
        raise replace(exc, message="Failed to delete message") from exc
    return DeleteMessageResponse(ok=True)
