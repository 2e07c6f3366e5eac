"""Pydantic schemas for mailbox account creation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AccountCreateRequest(BaseModel):
    """Optional body of ``POST /api/account``."""

    model_config = ConfigDict(populate_by_name=True)

    local_part: str | None = Field(
        default=None,
        alias="localPart",
        min_length=1,
        max_length=64,
        pattern=r"^[A-Za-z0-9._-]+$",
        description="Requested mailbox name; a random 8-character name is used when omitted.",
    )


class AccountCreateResponse(BaseModel):
    """Credentials of the new mailbox. The password is never included."""

    address: str = Field(..., description="Full mailbox address (local@domain).")
    token: str = Field(..., description="Bearer token for the /api/messages endpoints.")
