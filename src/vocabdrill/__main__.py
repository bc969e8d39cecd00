"""Main entry point for the application."""
import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import List, Optional

from vocabdrill.app import VocabDrillApp
from vocabdrill.config import ensure_directories, settings
from vocabdrill.exceptions import VocabDrillError
from vocabdrill.logging_config import setup_logging
from vocabdrill.models.base import SessionLocal, init_db
from vocabdrill.models.models import ItemKind
from vocabdrill.services.data_service import DataService, parse_csv
from vocabdrill.services.item_service import ItemService

logger = logging.getLogger(__name__)

ADDABLE_KINDS = [ItemKind.NOUN.value, ItemKind.VERB.value, ItemKind.ADJECTIVE.value]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vocabdrill", description="Vocabulary drill with spaced levels")
    subparsers = parser.add_subparsers(dest="command")

    drill = subparsers.add_parser("drill", help="Run a practice session (default)")
    drill.add_argument("--manual", action="store_true", help="Press Enter to leave intros and feedback")

    add = subparsers.add_parser("add", help="Add words with generated translations and examples")
    add.add_argument("words", nargs="+", help="Words in the source language")
    add.add_argument("--kind", choices=ADDABLE_KINDS, default=ItemKind.NOUN.value)

    import_csv = subparsers.add_parser("import-csv", help="Add words listed in a CSV file")
    import_csv.add_argument("path", type=Path)

    export = subparsers.add_parser("export", help="Write the whole store to a JSON file")
    export.add_argument("path", type=Path, nargs="?", help="Defaults to a file in the exports directory")

    import_json = subparsers.add_parser("import", help="Load a JSON export")
    import_json.add_argument("path", type=Path)
    import_json.add_argument("--clear", action="store_true", help="Delete the existing store first")

    return parser


def run_drill(manual: bool) -> None:
    app = VocabDrillApp(auto_advance=not manual)
    try:
        asyncio.run(app.run_session())
    except KeyboardInterrupt:
        print()
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        app.stop()


def add_words(words: List[str], kind: str) -> int:
    db = SessionLocal()
    try:
        created, failed = ItemService(db).add_words((word, ItemKind(kind)) for word in words)
    finally:
        db.close()
    for item in created:
        print(f"{item.source_text} = {item.display_translation}")
    for word, error in failed:
        print(f"Failed to add {word}: {error}", file=sys.stderr)
    return 1 if failed else 0


def import_csv(path: Path) -> int:
    rows = parse_csv(path.read_text(encoding="utf-8"))
    logger.info(f"Read {len(rows)} words from {path}")
    db = SessionLocal()
    try:
        created, failed = ItemService(db).add_words(rows)
    finally:
        db.close()
    print(f"Added {len(created)} words, {len(failed)} failed")
    return 1 if failed else 0


def export_data(path: Optional[Path]) -> int:
    if path is None:
        stamp = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
        path = settings.paths.exports_dir / f"vocabdrill-{stamp}.json"
    db = SessionLocal()
    try:
        data = DataService(db).export_data()
    finally:
        db.close()
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    print(f"Exported {len(data['items'])} items to {path}")
    return 0


def import_data(path: Path, clear: bool) -> int:
    data = json.loads(path.read_text(encoding="utf-8"))
    db = SessionLocal()
    try:
        imported, skipped = DataService(db).import_data(data, clear_existing=clear)
    finally:
        db.close()
    print(f"Imported {imported} items, skipped {skipped}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    ensure_directories()
    setup_logging("Starting vocabdrill ...")
    init_db()

    try:
        if args.command == "add":
            return add_words(args.words, args.kind)
        if args.command == "import-csv":
            return import_csv(args.path)
        if args.command == "export":
            return export_data(args.path)
        if args.command == "import":
            return import_data(args.path, args.clear)
        run_drill(getattr(args, "manual", False))
        return 0
    except (VocabDrillError, OSError, json.JSONDecodeError) as e:
        logger.error(f"{args.command or 'drill'} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
