"""
API error parsing for the notes client.

The parsing extracts semantic meaning from HTTP errors returned by the note
store. The client then maps each category onto its own exception types.
"""

from dataclasses import dataclass
from typing import Any, Literal

import httpx

ErrorCategory = Literal[
    "auth",        # 401 - Invalid or expired token
    "forbidden",   # 403 - Access denied
    "not_found",   # 404 - Note not found
    "validation",  # 400/422 - Validation error
    "internal",    # 5xx or unexpected errors
]


@dataclass
class ParsedApiError:
    """Parsed API error with semantic category and message."""

    category: ErrorCategory
    message: str


def parse_http_error(  # noqa: PLR0911
    e: httpx.HTTPStatusError,
    entity_type: str = "note",
    entity_id: str = "",
) -> ParsedApiError:
    """
    Parse HTTP error into semantic categories.

    Args:
        e: The HTTP status error from httpx
        entity_type: Type of entity for error messages
        entity_id: ID of the entity for error messages

    Returns:
        ParsedApiError with category and message
    """
    status = e.response.status_code

    if status == 401:
        return ParsedApiError("auth", "Invalid or expired token")

    if status == 403:
        return ParsedApiError("forbidden", "Access denied")

    if status == 404:
        if entity_id:
            msg = f"{entity_type.title()} '{entity_id}' not found" if entity_type else f"'{entity_id}' not found"  # noqa: E501
        else:
            msg = f"{entity_type.title()} not found" if entity_type else "Not found"
        return ParsedApiError("not_found", msg)

    if status in (400, 422):
        return ParsedApiError("validation", _extract_validation_message(e))

    detail = _safe_get_detail(e)
    if detail:
        return ParsedApiError("internal", f"API error {status}: {detail}")
    return ParsedApiError("internal", f"API error {status}")


def _safe_get_detail(e: httpx.HTTPStatusError) -> str:
    """Safely extract a string detail from an error response."""
    try:
        body = e.response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        detail = body.get("detail", "")
        if isinstance(detail, dict):
            return str(detail.get("message", ""))
        return detail if isinstance(detail, str) else ""
    return ""


def _extract_validation_message(e: httpx.HTTPStatusError) -> str:
    """Extract validation error message from 400/422 response."""
    try:
        body = e.response.json()
        if not isinstance(body, dict):
            return "Validation error"
        detail = body.get("detail", "Validation error")
        if isinstance(detail, dict):
            return detail.get("message", str(detail))
        if isinstance(detail, list):
            # FastAPI validation errors return a list of error objects
            messages = []
            for err in detail:
                if isinstance(err, dict):
                    loc: list[Any] = err.get("loc", ["unknown"])
                    field = loc[-1] if loc else "unknown"
                    msg = err.get("msg", "invalid")
                    messages.append(f"{field}: {msg}")
            return "; ".join(messages) if messages else "Validation error"
        return str(detail)
    except ValueError:
        return "Validation error"
