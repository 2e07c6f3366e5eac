"""mail.tm API client adapter."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx

from tempmail_relay.adapters.mail_provider.base import AbstractMailProvider
from tempmail_relay.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)


class MailTmClient(AbstractMailProvider):
    """Client for the mail.tm REST API (or any compatible provider).

    Uses a single ``httpx.AsyncClient`` with a bounded timeout. Nothing is
    retried: every failure is raised immediately as UpstreamAppError.
    """

    def __init__(
        self,
        base_url: str = "https://api.mail.tm",
        timeout_seconds: float = 10.0,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async HTTP client.

        Args:
            base_url: Provider API base URL.
            timeout_seconds: Timeout applied to connect/read/write/pool.
            transport: Optional transport override (tests use MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    @staticmethod
    def _auth_headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _error_body(response: httpx.Response) -> Any:
        """Upstream error payload: JSON when parseable, else raw text."""
        try:
            return response.json()
        except ValueError:
            return response.text or None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        expect_body: bool = True,
        **kwargs: Any,
    ) -> Any:
        """Send one request and return its decoded JSON body.

        Args:
            method: HTTP method.
            path: Path relative to the provider base URL.
            expect_body: Whether a JSON body is expected on success.
            **kwargs: Passed through to ``httpx.AsyncClient.request``.

        Returns:
            Decoded JSON body, or None when ``expect_body`` is False.

        Raises:
            UpstreamAppError: On transport failure, timeout, non-2xx status
                or an undecodable success body.
        """
        start = time.perf_counter()
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.error(
                "upstream.timeout",
                extra={
                    "method": method,
                    "path": path,
                    "timeout_s": self.timeout_seconds,
                },
            )
            raise UpstreamAppError(
                code="upstream_timeout",
                message="Upstream request timed out",
                details=f"No response from provider within {self.timeout_seconds:g}s",
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(
                "upstream.unreachable",
                extra={"method": method, "path": path, "error_type": type(exc).__name__},
            )
            raise UpstreamAppError(
                code="upstream_unreachable",
                message="Upstream provider unreachable",
                details=str(exc) or type(exc).__name__,
            ) from exc

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "upstream.response",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        if response.is_error:
            raise UpstreamAppError(
                code="upstream_error",
                message="Upstream provider returned an error",
                details=self._error_body(response),
                upstream_status=response.status_code,
            )

        if not expect_body:
            return None

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamAppError(
                code="upstream_invalid_body",
                message="Upstream provider returned invalid JSON",
                details=response.text[:500] or None,
            ) from exc

    async def list_domains(self) -> Any:
        return await self._request("GET", "/domains")

    async def create_account(self, address: str, password: str) -> Any:
        return await self._request(
            "POST",
            "/accounts",
            json={"address": address, "password": password},
        )

    async def get_token(self, address: str, password: str) -> str:
        data = await self._request(
            "POST",
            "/token",
            json={"address": address, "password": password},
        )
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise UpstreamAppError(
                code="upstream_missing_token",
                message="Upstream provider returned no token",
                details=data,
            )
        return token

    async def list_messages(self, token: str, *, page: int | None = None) -> Any:
        params = {"page": page} if page is not None else None
        return await self._request(
            "GET",
            "/messages",
            headers=self._auth_headers(token),
            params=params,
        )

    async def get_message(self, token: str, message_id: str) -> Any:
        return await self._request(
            "GET",
            f"/messages/{quote(message_id, safe='')}",
            headers=self._auth_headers(token),
        )

    async def delete_message(self, token: str, message_id: str) -> None:
        await self._request(
            "DELETE",
            f"/messages/{quote(message_id, safe='')}",
            headers=self._auth_headers(token),
            expect_body=False,
        )
