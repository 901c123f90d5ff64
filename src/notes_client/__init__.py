"""Terminal client for a remote notes store."""

from .api_client import NotesApiClient
from .session import open_session

__all__ = ["NotesApiClient", "open_session"]
