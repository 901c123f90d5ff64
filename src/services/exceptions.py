"""Errors raised by the remote note client."""


class NotesClientError(Exception):
    """Base class for failures talking to the note store."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TransportError(NotesClientError):
    """
    Raised when the note store can't be reached or answers unexpectedly.

    Covers connection failures, timeouts, non-success status codes that don't
    map to a more specific error, and payloads that don't parse as notes.
    """


class NotFoundError(NotesClientError):
    """Raised when operating on a note id the store no longer has."""

    def __init__(self, note_id: object = None, message: str | None = None) -> None:
        self.note_id = note_id
        if message is None:
            message = f"Note '{note_id}' not found" if note_id is not None else "Note not found"
        super().__init__(message)


class NoteValidationError(NotesClientError):
    """Raised when a note is rejected, e.g. its title exceeds the allowed length."""
