"""Pytest fixtures for testing."""
import asyncio
from collections.abc import Iterator

import pytest

from core.config import get_settings
from schemas.note import Note, NoteDraft, NoteId
from services.exceptions import NotesClientError, NotFoundError
from services.note_session import NotesSession

SETTINGS_ENV_VARS = (
    "NOTES_API_URL",
    "NOTES_API_TOKEN",
    "NOTES_API_TIMEOUT",
    "NOTES_MAX_TITLE_LENGTH",
    "NOTES_LOG_LEVEL",
)


class FakeNotesClient:
    """
    In-memory stand-in for the notes API.

    Records every call in ``calls``. Failures are injected per method through
    ``failures`` and are one-shot. ``list_gates`` maps a search string to an
    event that ``list_notes`` waits on, so tests can control completion order.
    """

    def __init__(self, notes: list[Note] | None = None) -> None:
        self.notes: list[Note] = list(notes or [])
        self.calls: list[tuple[str, tuple]] = []
        self.failures: dict[str, NotesClientError] = {}
        self.list_gates: dict[str, asyncio.Event] = {}
        self._next_id = max((int(n.id) for n in self.notes), default=0) + 1

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def _raise_if_failing(self, method: str) -> None:
        error = self.failures.pop(method, None)
        if error is not None:
            raise error

    def _index(self, note_id: NoteId) -> int:
        for i, note in enumerate(self.notes):
            if note.id == note_id:
                return i
        raise NotFoundError(note_id)

    async def list_notes(self, search: str = "") -> list[Note]:
        self.calls.append(("list_notes", (search,)))
        gate = self.list_gates.get(search)
        if gate is not None:
            await gate.wait()
        self._raise_if_failing("list_notes")
        needle = search.lower()
        return [
            note for note in self.notes
            if needle in note.title.lower() or needle in note.content.lower()
        ]

    async def get_note(self, note_id: NoteId) -> Note:
        self.calls.append(("get_note", (note_id,)))
        self._raise_if_failing("get_note")
        return self.notes[self._index(note_id)]

    async def create_note(self, draft: NoteDraft) -> Note:
        self.calls.append(("create_note", (draft,)))
        self._raise_if_failing("create_note")
        note = Note(id=self._next_id, title=draft.title, content=draft.content)
        self._next_id += 1
        self.notes.append(note)
        return note

    async def update_note(self, note_id: NoteId, draft: NoteDraft) -> Note:
        self.calls.append(("update_note", (note_id, draft)))
        self._raise_if_failing("update_note")
        index = self._index(note_id)
        note = Note(id=note_id, title=draft.title, content=draft.content)
        self.notes[index] = note
        return note

    async def delete_note(self, note_id: NoteId) -> None:
        self.calls.append(("delete_note", (note_id,)))
        self._raise_if_failing("delete_note")
        del self.notes[self._index(note_id)]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from NOTES_* variables in the environment and the settings cache."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_notes() -> list[Note]:
    """Two notes, in the order the store returns them."""
    return [
        Note(id=1, title="A", content="alpha content"),
        Note(id=2, title="B", content="beta content"),
    ]


@pytest.fixture
def fake_client(sample_notes: list[Note]) -> FakeNotesClient:
    return FakeNotesClient(sample_notes)


@pytest.fixture
def empty_client() -> FakeNotesClient:
    return FakeNotesClient()


@pytest.fixture
async def session(fake_client: FakeNotesClient) -> NotesSession:
    """A session that has loaded the sample notes. Call log starts empty."""
    notes_session = NotesSession(fake_client)
    assert await notes_session.load()
    fake_client.calls.clear()
    return notes_session


@pytest.fixture
async def empty_session(empty_client: FakeNotesClient) -> NotesSession:
    """A session that has loaded an empty store. Call log starts empty."""
    notes_session = NotesSession(empty_client)
    assert await notes_session.load()
    empty_client.calls.clear()
    return notes_session
