"""Response error extraction for load test observability.

Parses storefront API error responses into human-readable messages.
Handles two response shapes:

- Request validation (400): {"error": "validation_error", "message": "...", "field": "..."}
- Domain errors (401/409/502/503): {"error": "<code>", "message": "...", "line": n}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a compact error message suitable for Locust failure messages and log lines."""
    try:
        body = response.json()
    except Exception:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if isinstance(body, dict) and "error" in body:
        parts = [str(body["error"])]
        if body.get("message"):
            parts.append(str(body["message"]))
        if body.get("field"):
            parts.append(f"field={body['field']}")
        if body.get("line") is not None:
            parts.append(f"line={body['line']}")
        return " | ".join(parts)

    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])[:300]

    return str(body)[:300]


def error_code(response: Response) -> str | None:
    try:
        body = response.json()
    except Exception:
        return None
    return body.get("error") if isinstance(body, dict) else None
