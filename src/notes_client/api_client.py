"""HTTP client for the remote note store."""

import logging
from collections.abc import Awaitable
from types import TracebackType
from typing import Any, Self

import httpx
from pydantic import ValidationError

from core.config import Settings, get_settings
from schemas.note import Note, NoteDraft, NoteId
from services.exceptions import (
    NoteValidationError,
    NotFoundError,
    NotesClientError,
    TransportError,
)
from shared.api_errors import parse_http_error

logger = logging.getLogger(__name__)

REQUEST_SOURCE = "notes-cli"


def _get_headers(token: str | None) -> dict[str, str]:
    """Get common headers for API requests."""
    headers = {"X-Request-Source": REQUEST_SOURCE}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def api_get(
    client: httpx.AsyncClient,
    path: str,
    token: str | None = None,
    params: dict[str, Any] | None = None,
) -> Any:
    """Make a GET request to the API."""
    response = await client.get(path, params=params, headers=_get_headers(token))
    response.raise_for_status()
    return response.json()


async def api_post(
    client: httpx.AsyncClient,
    path: str,
    token: str | None = None,
    json: dict[str, Any] | None = None,
) -> Any:
    """Make a POST request to the API."""
    response = await client.post(path, json=json, headers=_get_headers(token))
    response.raise_for_status()
    return response.json()


async def api_put(
    client: httpx.AsyncClient,
    path: str,
    token: str | None = None,
    json: dict[str, Any] | None = None,
) -> Any:
    """Make a PUT request to the API."""
    response = await client.put(path, json=json, headers=_get_headers(token))
    response.raise_for_status()
    return response.json()


async def api_delete(
    client: httpx.AsyncClient,
    path: str,
    token: str | None = None,
) -> Any:
    """Make a DELETE request to the API. Returns None for empty (204) responses."""
    response = await client.delete(path, headers=_get_headers(token))
    response.raise_for_status()
    if response.status_code == 204 or not response.content:
        return None
    return response.json()


def _translate_error(
    e: httpx.HTTPStatusError,
    note_id: NoteId | None,
) -> NotesClientError:
    """Map an HTTP status error onto the client's exception taxonomy."""
    parsed = parse_http_error(e, entity_id="" if note_id is None else str(note_id))
    if parsed.category == "not_found":
        return NotFoundError(note_id, parsed.message)
    if parsed.category == "validation":
        return NoteValidationError(parsed.message)
    return TransportError(parsed.message)


def _parse_note(data: Any) -> Note:
    try:
        return Note.model_validate(data)
    except ValidationError as e:
        raise TransportError(f"Malformed note in response: {e.error_count()} error(s)") from e


class NotesApiClient:
    """
    Async client for the notes API.

    Wraps an ``httpx.AsyncClient``; use it as an async context manager (or call
    ``aclose()``) so the underlying connection pool is released.

    Every method either returns validated ``Note`` models or raises one of
    ``TransportError``, ``NotFoundError`` or ``NoteValidationError``.
    """

    def __init__(self, http_client: httpx.AsyncClient, token: str | None = None) -> None:
        self._http = http_client
        self._token = token

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Self:
        """Build a client with its own HTTP connection pool from settings."""
        settings = settings or get_settings()
        http_client = httpx.AsyncClient(
            base_url=settings.api_url,
            timeout=settings.api_timeout,
        )
        return cls(http_client, token=settings.api_token)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if not self._http.is_closed:
            await self._http.aclose()

    async def _request(
        self,
        action: str,
        note_id: NoteId | None,
        call: Awaitable[Any],
    ) -> Any:
        try:
            return await call
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Notes API returned %s while trying to %s", e.response.status_code, action,
            )
            raise _translate_error(e, note_id) from e
        except httpx.RequestError as e:
            logger.warning("Notes API unavailable while trying to %s: %s", action, e)
            raise TransportError(f"API unavailable: {e}") from e
        except ValueError as e:
            # Body that isn't JSON
            raise TransportError("Invalid response body") from e

    async def list_notes(self, search: str = "") -> list[Note]:
        """
        Fetch notes matching ``search``.

        The search parameter is omitted when empty. Both a bare JSON array and a
        paginated ``{"items": [...]}`` envelope are accepted.
        """
        params = {"search": search} if search else None
        data = await self._request(
            "fetch notes", None, api_get(self._http, "/notes", self._token, params),
        )
        if isinstance(data, dict) and "items" in data:
            data = data["items"]
        if not isinstance(data, list):
            raise TransportError("Expected a list of notes")
        return [_parse_note(item) for item in data]

    async def get_note(self, note_id: NoteId) -> Note:
        """Fetch a single note by id."""
        data = await self._request(
            "fetch note", note_id, api_get(self._http, f"/notes/{note_id}", self._token),
        )
        return _parse_note(data)

    async def create_note(self, draft: NoteDraft) -> Note:
        """Create a note; the store assigns its id."""
        data = await self._request(
            "create note",
            None,
            api_post(self._http, "/notes", self._token, draft.model_dump()),
        )
        return _parse_note(data)

    async def update_note(self, note_id: NoteId, draft: NoteDraft) -> Note:
        """Replace the title and content of an existing note."""
        data = await self._request(
            "update note",
            note_id,
            api_put(self._http, f"/notes/{note_id}", self._token, draft.model_dump()),
        )
        return _parse_note(data)

    async def delete_note(self, note_id: NoteId) -> None:
        """Delete a note."""
        await self._request(
            "delete note", note_id, api_delete(self._http, f"/notes/{note_id}", self._token),
        )
