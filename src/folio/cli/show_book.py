"""CLI command that reconstructs a stored book and prints its structure."""

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


def main(argv: list[str] | None = None) -> int:
    try:
        settings = FolioSettings.from_env()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    parser = argparse.ArgumentParser(description="Print the reconstructed spreads and state of a book")
    parser.add_argument("--book-id", required=True, help="Book document identifier")
    parser.add_argument("--db-path", default=str(settings.db_path), help="SQLite database path")
    parser.add_argument("--collection", default=settings.collection, help="Document collection name")
    parser.add_argument("--layout", default=None, help="Layout JSON file (defaults to the built-in book)")
    parser.add_argument("--state", action="store_true", help="Include the canonical stored state")
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
        snapshot = session.open(subscribe=False)
        payload = session.structure()
        if args.state:
            payload["state"] = snapshot.to_dict()

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    raise SystemExit(main())
