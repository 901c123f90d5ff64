"""Session lifecycle: one HTTP client and one state machine per client session."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from core.config import Settings, get_settings
from services.note_session import NotesSession

from .api_client import NotesApiClient


@asynccontextmanager
async def open_session(settings: Settings | None = None) -> AsyncIterator[NotesSession]:
    """
    Open a notes session backed by the HTTP API.

    The HTTP client is created on entry and closed on exit, together with the
    session's subscribers.
    """
    settings = settings or get_settings()
    async with NotesApiClient.from_settings(settings) as client:
        session = NotesSession(client)
        try:
            yield session
        finally:
            session.close()
