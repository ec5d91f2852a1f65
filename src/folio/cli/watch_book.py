"""CLI entrypoint that follows a book and logs merged remote changes."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

from folio.book.session import BookSession
from folio.config import FolioSettings
from folio.layout import LayoutError, load_layout
from folio.store.sqlite_store import SqliteDocumentStore
from folio.store.watcher import StoreChangeWatcher
from folio.sync.adapter import RemoteStoreAdapter


load_dotenv()

LOGGER = logging.getLogger(__name__)


def _parse_args(settings: FolioSettings, argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Follow a book and log changes written by other viewers")
    parser.add_argument("--book-id", required=True, help="Book document identifier")
    parser.add_argument("--db-path", default=str(settings.db_path), help="SQLite database path")
    parser.add_argument("--collection", default=settings.collection, help="Document collection name")
    parser.add_argument("--layout", default=None, help="Layout JSON file (defaults to the built-in book)")
    parser.add_argument(
        "--debounce",
        type=float,
        default=settings.watch_debounce_seconds,
        help="Debounce delay in seconds",
    )
    return parser.parse_args(argv)


async def _run_watcher(args: argparse.Namespace, settings: FolioSettings) -> int:
    db_path = Path(args.db_path)
    if not db_path.parent.is_dir():
        LOGGER.error("db-path directory must exist: %s", db_path.parent)
        return 2

    try:
        layout = load_layout(args.layout) if args.layout else settings.load_layout()
    except LayoutError as exc:
        LOGGER.error("%s", exc)
        return 2

    with SqliteDocumentStore(db_path, collection=args.collection) as store:
        session = BookSession(
            RemoteStoreAdapter(store, args.book_id),
            layout,
            min_rows=settings.text_min_rows,
        )
        session.open()
        watcher = StoreChangeWatcher(store, debounce_seconds=float(args.debounce))
        await watcher.start()
        LOGGER.info("Following book %s in %s (debounce %.2fs)", args.book_id, db_path, float(args.debounce))

        try:
            while True:
                await asyncio.sleep(1.0)
        finally:
            watcher.stop()
            session.close()
            LOGGER.info("Watcher stopped cleanly")


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    try:
        settings = FolioSettings.from_env()
    except ValueError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 2
    args = _parse_args(settings, argv)
    try:
        return asyncio.run(_run_watcher(args, settings))
    except KeyboardInterrupt:
        LOGGER.info("Shutdown requested")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
