"""Entry point that lists, views or downloads school note attachments."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from dotenv import load_dotenv

# Ensure project root is on sys.path when running as a script
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from notes_fetcher.api_client import SchoolApiClient
from notes_fetcher.config import Settings
from notes_fetcher.errors import ApiError
from notes_fetcher.models import DECLARED_TYPES, AttachmentRef
from notes_fetcher.providers import ConsolePrompter
from notes_fetcher.retrieval import build_retriever
from notes_fetcher.session_store import credential_provider_from_settings

load_dotenv()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="View or download school note attachments.")
    parser.add_argument("--yes", action="store_true", help="Answer every prompt with its first option")
    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="List notes with attachments")
    list_cmd.add_argument("--class-id", help="Class to list notes for (required for students)")
    list_cmd.add_argument("--subject", help="Only notes for this subject")

    for name, help_text in (("view", "Open a note file in the default app"), ("download", "Save a note file")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("note_id", nargs="?", help="Note id as listed by the API")
        cmd.add_argument("--class-id", help="Class used to look the note up")
        cmd.add_argument("--url", help="Fetch this URL directly instead of looking up a note")
        cmd.add_argument("--title", default="file", help="Title used for the local filename with --url")
        cmd.add_argument("--type", dest="declared_type", choices=DECLARED_TYPES, default="pdf")
        cmd.add_argument("--file-name", help="Original filename with --url")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def resolve_ref(args: argparse.Namespace, api: SchoolApiClient) -> AttachmentRef:
    if args.url:
        return AttachmentRef(
            id=args.note_id or "adhoc",
            title=args.title,
            declared_type=args.declared_type,
            source_file_name=args.file_name,
            remote_url=args.url,
        )
    if not args.note_id:
        raise SystemExit("Provide a note id or --url.")
    for note in api.list_notes(class_id=args.class_id):
        if note.note_id == args.note_id:
            return note.to_attachment()
    raise SystemExit(f"Note {args.note_id} not found.")


def print_notes(api: SchoolApiClient, args: argparse.Namespace) -> None:
    notes = api.list_notes(class_id=args.class_id, subject=args.subject)
    if not notes:
        print("No notes found.")
        return
    for note in notes:
        print(
            f"{note.note_id}\t{note.file_type.upper()}\t{note.title} ({note.subject})"
            f"\t{note.file_size or '-'}\tviews={note.views} downloads={note.downloads}"
        )


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    settings = Settings()
    configure_logging(settings.log_level)

    api = SchoolApiClient(settings, credential_provider_from_settings(settings))

    try:
        if args.command == "list":
            print_notes(api, args)
            return
        ref = resolve_ref(args, api)
    except (ApiError, ValueError) as exc:
        logging.error("Could not load notes: %s", exc)
        raise SystemExit(1) from exc

    retriever = build_retriever(settings, ConsolePrompter(assume_yes=args.yes))
    if args.command == "view":
        result = retriever.view_file(ref)
    else:
        result = retriever.download_file(ref)

    if result.follow_up_result is not None:
        result = result.follow_up_result
    if not result.ok:
        raise SystemExit(1)
    logging.info("%s complete: %s", args.command.capitalize(), result.path)


if __name__ == "__main__":
    main()
