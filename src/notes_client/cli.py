"""
Command-line front-end for the notes client.

Each invocation opens one session, drives it through the same intents an
interactive front-end would use, and renders the resulting snapshot.
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable

from core.config import Settings, get_settings
from schemas.note import Note
from services.note_session import NotesSession, SessionSnapshot

from .session import open_session

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 30


def render_list(snapshot: SessionSnapshot) -> list[str]:
    """Render the collection, marking the selected note with '*'."""
    if not snapshot.collection:
        if snapshot.search:
            return [f"No notes match '{snapshot.search}'."]
        return ["No notes yet. Create one with 'notes create --title ...'."]
    lines = []
    for note in snapshot.collection:
        marker = "*" if note.id == snapshot.selection else " "
        line = f"{marker} {note.id}\t{note.display_title}"
        snippet = note.snippet(SNIPPET_LENGTH)
        if snippet:
            line += f"\t{snippet}"
        lines.append(line)
    return lines


def render_note(note: Note) -> list[str]:
    """Render a single note with its full content."""
    return [
        f"[{note.id}] {note.display_title}",
        "",
        note.content or "No content",
    ]


def _find_note(snapshot: SessionSnapshot, ref: str) -> Note | None:
    """Look up a note in the collection by the id given on the command line."""
    return next((note for note in snapshot.collection if str(note.id) == ref), None)


async def _select(session: NotesSession, ref: str) -> bool:
    if not await session.load():
        return False
    note = _find_note(session.snapshot(), ref)
    if note is None:
        # Reported through the session so the error surfaces like any other.
        return session.select_note(ref)
    return session.select_note(note.id)


async def _cmd_list(session: NotesSession, args: argparse.Namespace) -> bool:
    if not await session.search(args.search):
        return False
    print("\n".join(render_list(session.snapshot())))
    return True


async def _cmd_show(session: NotesSession, args: argparse.Namespace) -> bool:
    note = await session.fetch_note(args.note_id)
    if note is None:
        return False
    print("\n".join(render_note(note)))
    return True


async def _cmd_create(session: NotesSession, args: argparse.Namespace) -> bool:
    ok = (
        session.start_create()
        and session.change_draft(title=args.title, content=args.content)
        and await session.save()
    )
    if ok:
        note = session.snapshot().current_note
        if note is not None:
            print(f"Saved note {note.id}: {note.display_title}")
    return ok


async def _cmd_edit(session: NotesSession, args: argparse.Namespace) -> bool:
    changes = {
        field: value
        for field, value in (("title", args.title), ("content", args.content))
        if value is not None
    }
    ok = (
        await _select(session, args.note_id)
        and session.start_edit()
        and session.change_draft(**changes)
        and await session.save()
    )
    if ok:
        note = session.snapshot().current_note
        if note is not None:
            print(f"Saved note {note.id}: {note.display_title}")
    return ok


async def _cmd_delete(session: NotesSession, args: argparse.Namespace) -> bool:
    ok = await _select(session, args.note_id) and await session.delete()
    if ok:
        print(f"Deleted note {args.note_id}.")
    return ok


Command = Callable[[NotesSession, argparse.Namespace], Awaitable[bool]]

COMMANDS: dict[str, Command] = {
    "list": _cmd_list,
    "show": _cmd_show,
    "create": _cmd_create,
    "edit": _cmd_edit,
    "delete": _cmd_delete,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``notes`` command."""
    parser = argparse.ArgumentParser(
        prog="notes",
        description="List, search, create, edit and delete notes on a remote store.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List notes")
    list_parser.add_argument("-s", "--search", default="", help="Only show notes matching TEXT")

    show_parser = subparsers.add_parser("show", help="Show a note with its content")
    show_parser.add_argument("note_id", help="ID of the note")

    create_parser = subparsers.add_parser("create", help="Create a note")
    create_parser.add_argument("--title", required=True, help="Note title")
    create_parser.add_argument("--content", default="", help="Note content")

    edit_parser = subparsers.add_parser("edit", help="Change a note's title and/or content")
    edit_parser.add_argument("note_id", help="ID of the note")
    edit_parser.add_argument("--title", help="New title")
    edit_parser.add_argument("--content", help="New content")

    delete_parser = subparsers.add_parser("delete", help="Delete a note")
    delete_parser.add_argument("note_id", help="ID of the note")

    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Run one command in its own session. Returns the process exit status."""
    async with open_session(settings) as session:
        ok = await COMMANDS[args.command](session, args)
        if not ok:
            error = session.snapshot().error or "Command failed"
            print(f"Error: {error}", file=sys.stderr)
            return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.debug("Using notes API at %s", settings.api_url)
    return asyncio.run(run(args, settings))

