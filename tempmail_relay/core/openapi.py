"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Bearer security scheme, required on the mailbox (``/messages``) paths

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

BEARER_SCHEME_NAME = "MailboxBearer"


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security.

    - Injects components.securitySchemes for the mailbox bearer token
    - Marks operations under ``/messages`` as requiring it; every other
      operation is public (``security: []``)
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            BEARER_SCHEME_NAME,
            {
                "type": "http",
                "scheme": "bearer",
                "description": "Token returned by POST /api/account.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {"name": "Account", "description": "Disposable mailbox creation."},
            {"name": "Domains", "description": "Domains offered by the provider."},
            {"name": "Messages", "description": "Mailbox messages (bearer token required)."},
            {"name": "Health", "description": "Liveness check."},
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            requires_token = "/messages" in path
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = [{BEARER_SCHEME_NAME: []}] if requires_token else []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
