"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- A shared ``ErrorResponse`` component matching the global exception handlers
- Documented 400/429/5xx responses on every ``/v1`` operation

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

ERROR_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["code", "message", "status"],
    "properties": {
        "code": {
            "type": "string",
            "enum": [
                "INVALID_INPUT",
                "RATE_LIMIT",
                "API_ERROR",
                "AUTH_ERROR",
                "NETWORK_ERROR",
                "INTERNAL_ERROR",
            ],
        },
        "message": {"type": "string"},
        "status": {"type": "integer"},
        "retryAfter": {"type": "integer", "description": "Seconds to wait before retrying."},
    },
}

ERROR_RESPONSES = {
    "400": "Invalid input (empty or oversized text, unsupported language).",
    "429": "Rate limited (per-client, global or daily quota, or provider throttling).",
    "500": "Provider configuration error or unexpected failure.",
    "502": "Translation or analysis provider failure.",
    "503": "Provider unreachable.",
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and error responses."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("schemas", {}).setdefault("ErrorResponse", ERROR_SCHEMA)

        # Tags metadata
        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {"name": "Translation", "description": "English/Japanese translation."},
            {"name": "Analysis", "description": "Japanese morphological analysis."},
            {"name": "Health", "description": "Liveness checks."},
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not path.startswith("/v1/"):
                continue
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.setdefault("responses", {})
                for status, description in ERROR_RESPONSES.items():
                    responses.setdefault(
                        status,
                        {
                            "description": description,
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/ErrorResponse"}
                                }
                            },
                        },
                    )

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
