"""Cache of the last server-confirmed note list."""
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from schemas.note import Note, NoteDraft, NoteId
from services.exceptions import NotesClientError

logger = logging.getLogger(__name__)


class NotesClient(Protocol):
    """Operations the client side needs from the remote note store."""

    async def list_notes(self, search: str = "") -> Sequence[Note]: ...

    async def get_note(self, note_id: NoteId) -> Note: ...

    async def create_note(self, draft: NoteDraft) -> Note: ...

    async def update_note(self, note_id: NoteId, draft: NoteDraft) -> Note: ...

    async def delete_note(self, note_id: NoteId) -> None: ...


@dataclass(frozen=True)
class RefreshResult:
    """
    Outcome of a single refresh request.

    ``applied`` is False when a newer refresh was issued while this one was in
    flight; the cache was left alone and ``notes`` is whatever it held.
    """

    sequence: int
    applied: bool
    notes: tuple[Note, ...]


class NoteCollectionCache:
    """
    Holds the notes returned by the last applied ``list_notes`` call.

    Refreshes may overlap (e.g. while search text is being typed). Each call to
    ``refresh`` takes the next sequence number and only the response to the
    most recently issued request is applied; anything older is dropped when it
    completes, whether it succeeded or failed.
    """

    def __init__(self, client: NotesClient) -> None:
        self._client = client
        self._notes: tuple[Note, ...] = ()
        self._search = ""
        self._issued = 0
        self._applied = 0

    @property
    def search(self) -> str:
        """Filter used by the last applied refresh."""
        return self._search

    @property
    def latest_issued(self) -> int:
        return self._issued

    @property
    def latest_applied(self) -> int:
        return self._applied

    def current(self) -> tuple[Note, ...]:
        """Return the last successfully fetched collection."""
        return self._notes

    def find(self, note_id: NoteId | None) -> Note | None:
        if note_id is None:
            return None
        return next((note for note in self._notes if note.id == note_id), None)

    def first(self, exclude: NoteId | None = None) -> Note | None:
        """First note in the collection, optionally skipping ``exclude``."""
        return next((note for note in self._notes if note.id != exclude), None)

    async def refresh(self, search: str) -> RefreshResult:
        """
        Fetch notes matching ``search`` and replace the cache.

        Raises:
            NotesClientError: If the fetch failed and no newer refresh has been
                issued since. The previous collection is kept.
        """
        self._issued += 1
        sequence = self._issued
        try:
            notes = await self._client.list_notes(search)
        except NotesClientError as e:
            if sequence != self._issued:
                logger.debug("Ignoring failure of superseded refresh #%d: %s", sequence, e)
                return RefreshResult(sequence, applied=False, notes=self._notes)
            raise

        if sequence != self._issued:
            logger.debug(
                "Discarding superseded refresh #%d (latest issued is #%d)",
                sequence,
                self._issued,
            )
            return RefreshResult(sequence, applied=False, notes=self._notes)

        self._notes = tuple(notes)
        self._search = search
        self._applied = sequence
        logger.debug("Applied refresh #%d: %d note(s) for %r", sequence, len(self._notes), search)
        return RefreshResult(sequence, applied=True, notes=self._notes)
