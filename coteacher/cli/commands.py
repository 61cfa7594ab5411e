"""Command-line access to the CoTeacher services.

Runs the same object graph as the API (see ``coteacher.main.build_components``)
as one-shot commands, for operators re-indexing a material or checking
answers without the frontend.

Usage::

    python -m coteacher.cli index <material_id>
    python -m coteacher.cli ask <course_id> "What is covered in week 3?"
    python -m coteacher.cli transcribe <recording_id> <audio_url>

    # Local development (STORAGE_BACKEND=local, STORE_BACKEND=sqlite):
    python -m coteacher.cli add-material --course c1 --file syllabus.pdf
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from coteacher.config.settings import Settings
from coteacher.models.chat import ChatMessage, ChatRole
from coteacher.utils.errors import CoTeacherError

Handler = Callable[[argparse.Namespace, dict[str, Any]], Awaitable[int]]


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_index(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Index (or re-index) one material."""
    result = await components["indexer"].index_material(args.material_id)
    print(f"Indexed material {result.material_id} ({result.kind.value})")
    print(f"  Chunks:  {result.chunks}")
    print(f"  Batches: {result.batches}")
    print(f"  Time:    {result.duration_seconds:.2f}s")
    return 0


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ask a course-scoped question and print the reply."""
    reply = await components["chat_service"].answer(
        args.course_id,
        [ChatMessage(role=ChatRole.USER, content=args.question)],
    )
    print(reply)
    return 0


async def _handle_transcribe(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Transcribe a recording and print the generated notes."""
    notes = await components["transcription_service"].process_recording(
        args.recording_id, args.audio_url
    )
    print(notes.notes)
    return 0


async def _handle_add_material(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Upload a local file and register it as a material (local backends only)."""
    from coteacher.providers.storage.local_file_storage_provider import LocalFileStorageProvider
    from coteacher.providers.store.sqlite_course_store import SQLiteCourseStore

    storage = components["storage"]
    store = components["store"]
    if not isinstance(storage, LocalFileStorageProvider) or not isinstance(store, SQLiteCourseStore):
        print(
            "Error: add-material needs STORAGE_BACKEND=local and STORE_BACKEND=sqlite",
            file=sys.stderr,
        )
        return 1

    path = Path(args.file)
    storage_path = f"{args.course}/{path.name}"
    storage.put(args.bucket or components["materials_bucket"], storage_path, path.read_bytes())
    material = await store.add_material(
        course_id=args.course,
        storage_path=storage_path,
        title=args.title or path.name,
        mime_type=mimetypes.guess_type(path.name)[0] or "",
    )
    print(f"Added material {material.id} ({storage_path})")
    return 0


_HANDLERS: dict[str, Handler] = {
    "index": _handle_index,
    "ask": _handle_ask,
    "transcribe": _handle_transcribe,
    "add-material": _handle_add_material,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    # Deferred: pulls in FastAPI, the OpenAI SDK and the store drivers.
    from coteacher.main import build_components, initialize_components

    components: dict[str, Any] | None = None
    try:
        components = build_components(app_settings)
        await initialize_components(components)
        return await _HANDLERS[args.command](args, components)
    except CoTeacherError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        if components is not None:
            await components["http_client"].aclose()


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CoTeacher CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m coteacher.cli",
        description="Index course materials, ask course questions, transcribe lectures.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    index_parser = subparsers.add_parser("index", help="Index (or re-index) a material")
    index_parser.add_argument("material_id", help="Material identifier")

    ask_parser = subparsers.add_parser("ask", help="Ask a question about a course")
    ask_parser.add_argument("course_id", help="Course identifier")
    ask_parser.add_argument("question", help="Question text")

    transcribe_parser = subparsers.add_parser(
        "transcribe", help="Transcribe a lecture recording into notes"
    )
    transcribe_parser.add_argument("recording_id", help="Recording identifier")
    transcribe_parser.add_argument("audio_url", help="Public storage URL of the audio")

    add_parser = subparsers.add_parser(
        "add-material", help="Register a local file as a material (local backends)"
    )
    add_parser.add_argument("--course", required=True, help="Course identifier")
    add_parser.add_argument("--file", required=True, help="Path to the file")
    add_parser.add_argument("--title", default="", help="Display title (default: file name)")
    add_parser.add_argument(
        "--bucket", default="", help="Bucket name (default: MATERIALS_BUCKET setting)"
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse arguments, run the command, exit with its code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    exit_code = asyncio.run(_run(args, Settings()))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
