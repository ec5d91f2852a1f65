"""SQLite schema and pragmas for the book document store."""

from __future__ import annotations

import sqlite3


PRAGMA_BUSY_TIMEOUT_MS = 5000


def apply_runtime_pragmas(connection: sqlite3.Connection) -> None:
    """Apply pragmas that let several viewers share one database file."""

    connection.execute("PRAGMA journal_mode=WAL;")
    connection.execute(f"PRAGMA busy_timeout={PRAGMA_BUSY_TIMEOUT_MS};")
    connection.execute("PRAGMA synchronous=NORMAL;")


def ensure_schema(connection: sqlite3.Connection) -> None:
    """Create the documents table if missing."""

    connection.executescript(
        """
        CREATE TABLE IF NOT EXISTS documents (
            collection TEXT NOT NULL,
            document_id TEXT NOT NULL,
            body TEXT NOT NULL,
            revision INTEGER NOT NULL DEFAULT 1,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (collection, document_id)
        );

        CREATE INDEX IF NOT EXISTS idx_documents_revision
        ON documents(collection, document_id, revision);
        """
    )
