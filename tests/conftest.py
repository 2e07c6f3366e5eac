"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It points the settings at the testing environment before any module reads
them, and provides a fake upstream provider served through
``httpx.MockTransport`` so the real upstream client code runs in tests.
"""

import json
import os
from typing import Any, Callable
from unittest.mock import Mock

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_FRONTEND_URL", "http://localhost:5173")
os.environ.setdefault("UPSTREAM_BASE_URL", "https://mail.test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tempmail_relay.adapters.mail_provider.mailtm_client import MailTmClient
from tempmail_relay.core.app_factory import create_app
from tempmail_relay.core.config import AppSettings, LogSettings, Settings, UpstreamSettings

FRONTEND_ORIGIN = "http://localhost:5173"
UPSTREAM_URL = "https://mail.test"
VALID_TOKEN = "tok-123"


class FakeUpstream:
    """In-process stand-in for the mail.tm API.

    Attributes:
        domains: Domain entries served by GET /domains.
        messages: Messages by id, visible with VALID_TOKEN.
        calls: Every request received, in order.
        overrides: (method, path) → response or exception to use instead of
            the default behaviour.
    """

    def __init__(self) -> None:
        self.domains: list[dict[str, Any]] = [
            {"id": "dom-1", "domain": "example.test", "isActive": True},
            {"id": "dom-2", "domain": "other.test", "isActive": True},
        ]
        self.messages: dict[str, dict[str, Any]] = {
            "msg-1": {
                "id": "msg-1",
                "from": {"address": "sender@example.org", "name": "Sender"},
                "subject": "Welcome",
                "intro": "Hello there",
                "text": "Hello there, welcome aboard.",
            }
        }
        self.accounts: dict[str, str] = {}
        self.calls: list[httpx.Request] = []
        self.overrides: dict[tuple[str, str], httpx.Response | Exception] = {}

    def paths(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.calls]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, request.url.path)

        if key in self.overrides:
            override = self.overrides[key]
            if isinstance(override, Exception):
                raise override
            return override

        if key == ("GET", "/domains"):
            return httpx.Response(
                200,
                json={"hydra:member": self.domains, "hydra:totalItems": len(self.domains)},
            )

        if key == ("POST", "/accounts"):
            body = json.loads(request.content)
            self.accounts[body["address"]] = body["password"]
            return httpx.Response(201, json={"id": "acc-1", "address": body["address"]})

        if key == ("POST", "/token"):
            body = json.loads(request.content)
            if self.accounts.get(body["address"]) != body["password"]:
                return httpx.Response(401, json={"code": 401, "message": "Invalid credentials."})
            return httpx.Response(200, json={"id": "acc-1", "token": VALID_TOKEN})

        if request.headers.get("Authorization") != f"Bearer {VALID_TOKEN}":
            return httpx.Response(401, json={"code": 401, "message": "JWT Token not found"})

        if key == ("GET", "/messages"):
            return httpx.Response(
                200,
                json={
                    "hydra:member": list(self.messages.values()),
                    "hydra:totalItems": len(self.messages),
                },
            )

        message_id = request.url.path.rsplit("/", 1)[-1]
        if request.url.path.startswith("/messages/") and message_id in self.messages:
            if request.method == "GET":
                return httpx.Response(200, json=self.messages[message_id])
            if request.method == "DELETE":
                del self.messages[message_id]
                return httpx.Response(204)

        return httpx.Response(
            404,
            json={"hydra:title": "An error occurred", "hydra:description": "Not Found"},
        )


def build_settings(**app_overrides: Any) -> Settings:
    """Settings for tests; keyword arguments override AppSettings fields."""
    app_kwargs: dict[str, Any] = {"frontend_url": FRONTEND_ORIGIN}
    app_kwargs.update(app_overrides)
    return Settings(
        app=AppSettings(**app_kwargs),
        upstream=UpstreamSettings(base_url=UPSTREAM_URL, timeout_seconds=5.0),
        log=LogSettings(),
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def clock() -> Mock:
    """Fake UNIX clock shared by the rate limiters of the app under test."""
    return Mock(return_value=1_000.0)


@pytest.fixture
def make_app(upstream: FakeUpstream, clock: Mock) -> Callable[..., FastAPI]:
    def _make(**app_overrides: Any) -> FastAPI:
        provider = MailTmClient(
            base_url=UPSTREAM_URL,
            timeout_seconds=5.0,
            transport=httpx.MockTransport(upstream.handler),
        )
        return create_app(
            build_settings(**app_overrides),
            mail_provider=provider,
            clock=clock,
            configure_logs=False,
        )

    return _make


@pytest.fixture
def client(make_app: Callable[..., FastAPI]) -> TestClient:
    with TestClient(make_app()) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {VALID_TOKEN}"}
