"""OpenAPI customization utilities.

Enriches the generated schema with tag descriptions and documents the
rate limit headers returned on 429 responses, keeping documentation
concerns out of the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Submissions",
        "description": "Rate-limited, sanitized and validated form submissions.",
    },
    {
        "name": "Security",
        "description": "Static description of the protections the demo showcases.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

RATE_LIMIT_HEADERS = {
    "Retry-After": "Seconds until the client's window resets.",
    "X-RateLimit-Limit": "Submissions allowed per window.",
    "X-RateLimit-Remaining": "Submissions left in the current window.",
    "X-RateLimit-Reset": "UNIX time at which the window resets.",
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with tags and 429 header docs."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                throttled = method_obj.get("responses", {}).get("429")
                if throttled is not None:
                    throttled.setdefault(
                        "headers",
                        {
                            name: {"description": desc, "schema": {"type": "integer"}}
                            for name, desc in RATE_LIMIT_HEADERS.items()
                        },
                    )

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
