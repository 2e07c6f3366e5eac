from __future__ import annotations

from dataclasses import replace
from typing import Any

from fastapi import APIRouter, Depends

from tempmail_relay.adapters.mail_provider.base import AbstractMailProvider
from tempmail_relay.api.deps import get_mail_provider
from tempmail_relay.core.errors import UpstreamAppError
from tempmail_relay.core.rate_limit import RouteClass, rate_limit
from tempmail_relay.schemas.common import ErrorResponse

router = APIRouter(tags=["Domains"])


@router.get(
    "/domains",
    dependencies=[Depends(rate_limit(RouteClass.GENERAL))],
    responses={429: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def list_domains(
    provider: AbstractMailProvider = Depends(get_mail_provider),
) -> Any:
    """Return the provider's domain collection unchanged."""
    try:
        return await provider.list_domains()
    except UpstreamAppError as exc:
        raise replace(exc, message="Failed to fetch domains") from exc
