"""
Selection and edit state for a notes client session.

``NotesSession`` decides which note is current, whether it is being edited or
created, and sequences create/update/delete calls against the remote store.
Presentation code reads immutable ``SessionSnapshot`` objects and drives the
session only through its intent methods.

Remote failures never escape an intent. They are captured as ``Err`` values,
turned into ``SessionSnapshot.error`` and the session is left exactly as it was
before the call. Intents return True on success and False otherwise.
"""
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from pydantic import ValidationError

from schemas.note import Note, NoteDraft, NoteId
from services.exceptions import NotesClientError
from services.note_collection import NoteCollectionCache, NotesClient, RefreshResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = [
    "Err",
    "NotesClient",
    "NotesSession",
    "Ok",
    "SessionMode",
    "SessionSnapshot",
]


class SessionMode(StrEnum):
    """What the session is currently doing with the selected note."""

    EMPTY = "empty"        # No notes, nothing selected
    VIEWING = "viewing"
    EDITING = "editing"    # Editing a persisted note through a draft
    CREATING = "creating"  # Editing a draft that has never been saved


EDIT_MODES = (SessionMode.EDITING, SessionMode.CREATING)

MUTATION_IN_PROGRESS = "Another save or delete is still in progress"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful remote call."""

    value: T


@dataclass(frozen=True)
class Err:
    """Failed remote call."""

    error: NotesClientError

    @property
    def message(self) -> str:
        return self.error.message


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session after a transition."""

    collection: tuple[Note, ...]
    search: str
    mode: SessionMode
    selection: NoteId | None
    base_note: Note | None
    draft: NoteDraft | None
    loading: bool
    error: str | None

    @property
    def current_note(self) -> Note | None:
        """Note being viewed or edited; None while creating or empty."""
        if self.mode in (SessionMode.VIEWING, SessionMode.EDITING):
            return self.base_note
        return None

    @property
    def is_editing(self) -> bool:
        return self.mode in EDIT_MODES


Subscriber = Callable[[SessionSnapshot], None]


def _validation_message(e: ValidationError) -> str:
    return "; ".join(err["msg"].removeprefix("Value error, ") for err in e.errors())


class NotesSession:
    """
    State machine for one client session.

    States are ``EMPTY``, ``VIEWING(note)``, ``EDITING(base, draft)`` and
    ``CREATING(draft)``. Synchronous intents (``select_note``, ``start_create``,
    ``start_edit``, ``change_draft``, ``cancel``) never touch the network.
    ``load``, ``search``, ``save`` and ``delete`` await the remote client; state
    is only assigned after every await has completed, so subscribers never see
    a half-applied transition. While a call is pending only ``loading`` changes.
    """

    def __init__(self, client: NotesClient) -> None:
        self._client = client
        self._cache = NoteCollectionCache(client)
        self._search = ""
        self._mode = SessionMode.EMPTY
        self._selection: NoteId | None = None
        self._base: Note | None = None
        self._draft: NoteDraft | None = None
        self._error: str | None = None
        self._pending = 0
        self._mutating = False
        # Bumped by every intent that replaces the edit session, so a remote
        # call that completes late can tell the user has moved on.
        self._generation = 0
        self._subscribers: list[Subscriber] = []

    # ------------------------------------------------------------------
    # Presentation contract
    # ------------------------------------------------------------------

    @property
    def cache(self) -> NoteCollectionCache:
        return self._cache

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            collection=self._cache.current(),
            search=self._search,
            mode=self._mode,
            selection=self._selection,
            base_note=self._base,
            draft=self._draft,
            loading=self._pending > 0,
            error=self._error,
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Call ``callback`` with a snapshot after every transition.

        Returns a function that removes the subscription again.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def close(self) -> None:
        """Drop subscribers at the end of the session."""
        self._subscribers.clear()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            callback(snapshot)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _busy(self) -> Iterator[None]:
        self._pending += 1
        self._notify()
        try:
            yield
        finally:
            self._pending -= 1

    async def _attempt(self, call: Awaitable[T]) -> Ok[T] | Err:
        try:
            return Ok(await call)
        except NotesClientError as e:
            return Err(e)

    async def _mutate_then_refresh(
        self,
        call: Awaitable[T],
    ) -> tuple[Ok[T] | Err, Ok[RefreshResult] | Err]:
        """
        Run a mutation and, if it succeeded, refresh the collection.

        Both calls share one loading span. When the mutation fails the refresh is
        skipped and its slot holds the same ``Err``.
        """
        self._mutating = True
        try:
            with self._busy():
                outcome = await self._attempt(call)
                if isinstance(outcome, Err):
                    return outcome, outcome
                return outcome, await self._attempt(self._cache.refresh(self._search))
        finally:
            self._mutating = False

    def _fail(self, message: str) -> bool:
        logger.warning("%s", message)
        self._error = message
        self._notify()
        return False

    def _show(self, note: Note | None) -> None:
        self._draft = None
        if note is None:
            self._mode = SessionMode.EMPTY
            self._selection = None
            self._base = None
        else:
            self._mode = SessionMode.VIEWING
            self._selection = note.id
            self._base = note

    def _repair_selection(self) -> None:
        """
        Point the selection back into the collection after a refresh.

        A stale or missing selection falls back to the first note, or EMPTY
        when there are no notes. A draft being edited is left alone.
        """
        if self._mode in EDIT_MODES:
            return
        self._show(self._cache.find(self._selection) or self._cache.first())

    # ------------------------------------------------------------------
    # Remote intents
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """Fetch the collection for the current search filter."""
        return await self.search(self._search)

    async def search(self, text: str = "") -> bool:
        """
        Refresh the collection with a new search filter.

        When searches overlap only the most recently issued one is applied;
        results and failures of older ones are dropped silently.
        """
        self._search = text
        with self._busy():
            result = await self._attempt(self._cache.refresh(text))

        if isinstance(result, Err):
            # Back to the filter the cached collection was fetched with.
            self._search = self._cache.search
            return self._fail(f"Failed to fetch notes: {result.message}")
        if result.value.applied:
            self._error = None
            self._repair_selection()
        self._notify()
        return True

    async def save(self) -> bool:
        """
        Persist the draft, refresh the collection and view the saved note.

        Creates a note in CREATING mode and updates the base note in EDITING
        mode. On failure the session keeps its edit mode and draft.
        """
        if self._mode not in EDIT_MODES or self._draft is None:
            return self._fail("There is no note being edited")
        if self._mutating:
            return self._fail(MUTATION_IN_PROGRESS)

        draft = self._draft
        base = self._base
        creating = self._mode is SessionMode.CREATING or base is None
        generation = self._generation
        if creating:
            call = self._client.create_note(draft)
        else:
            call = self._client.update_note(base.id, draft)
        saved, refreshed = await self._mutate_then_refresh(call)
        if isinstance(saved, Err):
            return self._fail(f"Failed to save note: {saved.message}")

        note = saved.value
        logger.info("Saved note %s", note.id)
        if generation != self._generation:
            # Another intent replaced the edit session while we were waiting.
            self._finish_refresh(refreshed)
            self._notify()
            return True

        if isinstance(refreshed, Err):
            # The note is stored but the list is stale. Keep editing the saved
            # note so a retry updates it instead of creating a duplicate.
            self._mode = SessionMode.EDITING
            self._selection = note.id
            self._base = note
            return self._fail(f"Note saved, but failed to refresh notes: {refreshed.message}")

        self._error = None
        if refreshed.value.applied:
            self._show(self._cache.find(note.id) or note)
            self._repair_selection()
        elif self._cache.latest_issued > self._cache.latest_applied:
            # A newer refresh is still in flight and repairs the selection when it lands.
            self._show(note)
        else:
            # A newer refresh already landed while the draft was still being edited.
            self._show(self._cache.find(note.id) or note)
            self._repair_selection()
        self._generation += 1
        self._notify()
        return True

    async def delete(self) -> bool:
        """
        Delete the current note.

        While CREATING there is nothing persisted, so this is the same as
        ``cancel()``.
        """
        if self._mode is SessionMode.CREATING:
            return self.cancel()
        if self._mode not in (SessionMode.VIEWING, SessionMode.EDITING) or self._base is None:
            return self._fail("No note selected")
        if self._mutating:
            return self._fail(MUTATION_IN_PROGRESS)

        note = self._base
        generation = self._generation
        deleted, refreshed = await self._mutate_then_refresh(self._client.delete_note(note.id))
        if isinstance(deleted, Err):
            return self._fail(f"Failed to delete note: {deleted.message}")

        logger.info("Deleted note %s", note.id)
        if generation != self._generation:
            self._finish_refresh(refreshed)
            self._notify()
            return True

        self._generation += 1
        # Until a refresh lands the cached list may still hold the deleted note.
        self._show(self._cache.first(exclude=note.id))
        if isinstance(refreshed, Err):
            return self._fail(f"Note deleted, but failed to refresh notes: {refreshed.message}")

        self._error = None
        self._notify()
        return True

    def _finish_refresh(self, refreshed: Ok[RefreshResult] | Err) -> None:
        if isinstance(refreshed, Ok) and refreshed.value.applied:
            self._repair_selection()

    # ------------------------------------------------------------------
    # Local intents
    # ------------------------------------------------------------------

    def select_note(self, note_id: NoteId) -> bool:
        """View a note from the collection, discarding any unsaved draft."""
        note = self._cache.find(note_id)
        if note is None:
            return self._fail(f"Note '{note_id}' not found")
        self._generation += 1
        self._error = None
        self._show(note)
        self._notify()
        return True

    def start_create(self) -> bool:
        """Begin a new, empty draft with no selection."""
        self._generation += 1
        self._mode = SessionMode.CREATING
        self._selection = None
        self._base = None
        self._draft = NoteDraft()
        self._notify()
        return True

    def start_edit(self) -> bool:
        """Begin editing a copy of the note being viewed."""
        if self._mode is not SessionMode.VIEWING or self._base is None:
            return self._fail("Select a note to edit")
        self._generation += 1
        self._mode = SessionMode.EDITING
        self._draft = self._base.to_draft()
        self._notify()
        return True

    def change_draft(self, **fields: str) -> bool:
        """
        Merge ``fields`` (``title`` and/or ``content``) into the draft.

        A title longer than the configured maximum is rejected and the draft is
        left unchanged.
        """
        if self._mode not in EDIT_MODES or self._draft is None:
            return self._fail("There is no note being edited")
        try:
            self._draft = self._draft.merge(**fields)
        except ValidationError as e:
            return self._fail(_validation_message(e))
        self._notify()
        return True

    def cancel(self) -> bool:
        """Discard the draft and view the first note (or nothing)."""
        if self._mode not in EDIT_MODES:
            return False
        self._generation += 1
        self._show(self._cache.first())
        self._notify()
        return True

    def clear_error(self) -> None:
        self._error = None
        self._notify()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_note(self, note_id: NoteId) -> Note | None:
        """
        Fetch one note straight from the store.

        Doesn't change the selection or the collection. Returns None and sets
        the error message when the note can't be fetched.
        """
        with self._busy():
            result = await self._attempt(self._client.get_note(note_id))
        if isinstance(result, Err):
            self._fail(f"Failed to fetch note: {result.message}")
            return None
        self._notify()
        return result.value
