"""Pydantic schemas for notes exchanged with the remote note store."""
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from schemas.validators import validate_title_length

NoteId = int | str


class Note(BaseModel):
    """
    A server-confirmed note.

    Instances are frozen so entries of a cached collection can't be changed
    in place. Editing always goes through a NoteDraft copy.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NoteId
    title: str = ""
    content: str = ""

    @field_validator("title", "content", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """The store may send null for fields that were never filled in."""
        return "" if v is None else v

    @property
    def display_title(self) -> str:
        """Title shown in listings; blank titles render as 'Untitled'."""
        return self.title or "Untitled"

    def snippet(self, length: int = 30) -> str:
        """Leading slice of the content used in list items."""
        return self.content[:length]

    def to_draft(self) -> "NoteDraft":
        """Return an independent editable copy of this note's fields."""
        return NoteDraft.model_construct(title=self.title, content=self.content)


class NoteDraft(BaseModel):
    """Editable fields of a note. Drafts never carry an id."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str = ""
    content: str = ""

    @field_validator("title")
    @classmethod
    def check_title_length(cls, v: str, info: ValidationInfo) -> str:
        """
        Validate title length against the configured limit.

        A title carried over unchanged from a stored note is left to the store
        to judge, so notes saved under a larger limit stay editable.
        """
        if info.context and info.context.get("title_unchanged"):
            return v
        return validate_title_length(v)

    def merge(self, **changes: str) -> "NoteDraft":
        """
        Return a new draft with ``changes`` applied.

        The merged draft is re-validated, so a new over-long title raises
        pydantic's ValidationError and leaves this draft untouched. The
        existing title is only checked when it is part of ``changes``.
        """
        return NoteDraft.model_validate(
            {**self.model_dump(), **changes},
            context={"title_unchanged": "title" not in changes},
        )
