"""CLI command that inserts a continuation spread into a stored book."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from folio.book.session import BookSession
from folio.config import FolioSettings
from folio.layout import LayoutError, load_layout
from folio.store.sqlite_store import SqliteDocumentStore
from folio.sync.adapter import RemoteStoreAdapter


load_dotenv()

LOGGER = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    try:
        settings = FolioSettings.from_env()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    parser = argparse.ArgumentParser(description="Insert a new spread after a given position")
    parser.add_argument("--book-id", required=True, help="Book document identifier")
    parser.add_argument("--after", type=int, default=None, help="Spread index to insert after (default: last viewed)")
    parser.add_argument("--db-path", default=str(settings.db_path), help="SQLite database path")
    parser.add_argument("--collection", default=settings.collection, help="Document collection name")
    parser.add_argument("--layout", default=None, help="Layout JSON file (defaults to the built-in book)")
    args = parser.parse_args(argv)

    try:
        layout = load_layout(args.layout) if args.layout else settings.load_layout()
    except LayoutError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    with SqliteDocumentStore(args.db_path, collection=args.collection) as store:
        session = BookSession(
            RemoteStoreAdapter(store, args.book_id),
            layout,
            min_rows=settings.text_min_rows,
        )
        session.open(subscribe=False)

        if args.after is not None and not session.navigator.jump_to(args.after):
            print(f"--after must be between 0 and {len(session.projection) - 1}", file=sys.stderr)
            return 2

        node = session.add_page()
        LOGGER.info("Inserted %s at spread %d of book %s", node.dynamic_id, node.spread_index, args.book_id)
        payload = {
            "book_id": args.book_id,
            "dynamic_id": node.dynamic_id,
            "index": node.spread_index,
            "label": node.label,
            "total_spreads": len(session.projection),
        }

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    raise SystemExit(main())
