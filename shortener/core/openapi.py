"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata
- A cookie-based security scheme for the credential cookie, applied only to
  the authenticated ``/api/user`` routes

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

PROTECTED_PREFIX = "/api/user/"


def apply_openapi_customizations(app: FastAPI, *, cookie_name: str) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security.

    Args:
        app: Application whose schema is customized.
        cookie_name: Name of the cookie carrying the credential.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "CredentialCookie",
            {
                "type": "apiKey",
                "in": "cookie",
                "name": cookie_name,
                "description": "Signed credential set by POST /api/login.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {"name": "Auth", "description": "Registration and login."},
            {"name": "Links", "description": "Create and list short links (authenticated)."},
            {"name": "Redirect", "description": "Resolve short codes."},
            {"name": "Health", "description": "Liveness checks."},
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not path.startswith(PROTECTED_PREFIX):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = [{"CredentialCookie": []}]

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
