"""Bearer credential extraction for mailbox endpoints.

The relay never validates mailbox tokens itself: the upstream provider does.
This module only makes sure a well-formed ``Authorization: Bearer <token>``
header is present before any upstream call is made.

Policy: the header is the only accepted carrier. Cookies are ignored.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Header

from tempmail_relay.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def parse_bearer_token(authorization: str | None) -> str:
    """Extract the token from an Authorization header value.

    Args:
        authorization: Raw header value, or None when absent.

    Returns:
        The bearer token.

    Raises:
        AuthenticationAppError: If the header is missing, uses another scheme,
            or carries an empty token.

    Examples:
        >>> parse_bearer_token("Bearer abc123")
        'abc123'
        >>> parse_bearer_token("bearer   abc123 ")
        'abc123'
    """
    if not authorization or not authorization.strip():
        raise AuthenticationAppError(
            code="missing_authorization",
            message="Missing Authorization header",
        )

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_SCHEME or not token:
        raise AuthenticationAppError(
            code="invalid_authorization",
            message="Invalid Authorization header",
        )
    return token


def _token_fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()[:16]


async def require_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """FastAPI dependency returning the caller's bearer token.

    Usage:
        @router.get("/messages")
        async def list_messages(token: str = Depends(require_bearer_token)):
            ...

    Raises:
        AuthenticationAppError: 401 when the credential is missing or malformed.
    """
    try:
        token = parse_bearer_token(authorization)
    except AuthenticationAppError as exc:
        logger.warning(
            "auth.rejected",
            extra={
                "reason": exc.code,
                "authorization_present": bool(authorization),
            },
        )
        raise

    logger.debug("auth.bearer_present", extra={"token_hash": _token_fingerprint(token)})
    return token
