"""Mailbox account creation against the upstream provider.

Creation is a three-step protocol (domains, account, token). It is not
atomic: if the token exchange fails the upstream account still exists and
nothing is rolled back. The generated password is only used for those two
calls and is never returned or logged.
"""

from __future__ import annotations

import logging
import secrets
import string
from typing import Any

from tempmail_relay.adapters.mail_provider.base import AbstractMailProvider
from tempmail_relay.core.errors import UpstreamAppError
from tempmail_relay.schemas.account import AccountCreateResponse

logger = logging.getLogger(__name__)

RANDOM_ALPHABET = string.ascii_lowercase + string.digits
LOCAL_PART_LENGTH = 8
PASSWORD_LENGTH = 16


def random_string(length: int) -> str:
    """Return ``length`` random lowercase alphanumeric characters."""
    return "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(length))


def extract_domains(payload: Any) -> list[str]:
    """Pull domain names out of the provider's domain collection.

    Accepts the JSON-LD collection (``hydra:member``) as well as a bare list.
    Entries without a ``domain`` field are skipped.
    """
    if isinstance(payload, dict):
        members = payload.get("hydra:member") or []
    elif isinstance(payload, list):
        members = payload
    else:
        members = []

    return [
        member["domain"]
        for member in members
        if isinstance(member, dict) and member.get("domain")
    ]


class AccountService:
    """Create disposable mailboxes and hand back their bearer token."""

    def __init__(self, provider: AbstractMailProvider) -> None:
        self.provider = provider

    async def pick_domain(self) -> str:
        """Return the first domain listed by the provider.

        Raises:
            UpstreamAppError: 502 when the provider lists no domains.
        """
        domains = extract_domains(await self.provider.list_domains())
        if not domains:
            logger.error("account.no_domains")
            raise UpstreamAppError(
                code="no_domains",
                message="No domains available",
            )
        return domains[0]

    async def create_account(self, local_part: str | None = None) -> AccountCreateResponse:
        """Register a mailbox and exchange its credentials for a token.

        Args:
            local_part: Requested mailbox name; random when omitted.

        Returns:
            AccountCreateResponse with the address and bearer token only.

        Raises:
            UpstreamAppError: When any of the three upstream steps fails.
        """
        domain = await self.pick_domain()

        address = f"{local_part or random_string(LOCAL_PART_LENGTH)}@{domain}"
        password = random_string(PASSWORD_LENGTH)

        await self.provider.create_account(address, password)
        token = await self.provider.get_token(address, password)

        logger.info(
            "account.created",
            extra={"domain": domain, "local_part_requested": bool(local_part)},
        )
        return AccountCreateResponse(address=address, token=token)
