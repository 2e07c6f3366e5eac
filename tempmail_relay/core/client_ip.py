"""Client identity resolution behind trusted reverse proxies.

The relay is usually deployed behind one load balancer or ingress, so the
socket peer is the proxy and the real caller is found in X-Forwarded-For.
Only the configured number of hops is trusted: entries further left are
client-controlled and could be spoofed.
"""

from __future__ import annotations

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def parse_forwarded_for(value: str | None) -> list[str]:
    """Split an X-Forwarded-For header into trimmed, non-empty addresses.

    Examples:
        >>> parse_forwarded_for("203.0.113.7, 10.0.0.2")
        ['203.0.113.7', '10.0.0.2']
        >>> parse_forwarded_for(None)
        []
    """
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def resolve_client_address(
    peer: str | None,
    forwarded_for: str | None,
    trust_proxy_hops: int,
) -> str:
    """Resolve the caller address given the number of trusted proxy hops.

    The address chain is built nearest-first: the socket peer, then the
    X-Forwarded-For entries from right to left. The first ``trust_proxy_hops``
    entries are trusted proxies, so the client is the entry right after
    them. When the chain is shorter than that, the furthest address wins.

    Args:
        peer: Socket-level peer address (None when unavailable).
        forwarded_for: Raw X-Forwarded-For header value.
        trust_proxy_hops: Number of trusted proxies in front of the service.

    Returns:
        Client address, or "unknown" when nothing is available.
    """
    chain = [peer or UNKNOWN_CLIENT]
    if trust_proxy_hops > 0:
        chain.extend(reversed(parse_forwarded_for(forwarded_for)))

    index = min(trust_proxy_hops, len(chain) - 1)
    return chain[index]


def get_client_address(request: Request, trust_proxy_hops: int) -> str:
    """Return the caller address for a FastAPI request."""
    peer = request.client.host if request.client else None
    return resolve_client_address(
        peer,
        request.headers.get("X-Forwarded-For"),
        trust_proxy_hops,
    )
