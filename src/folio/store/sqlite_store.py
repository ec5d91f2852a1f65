"""SQLite-backed document store shared by viewers on one machine."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
import sqlite3
from typing import Any, Mapping

from folio.store.base import DocumentCallback, StoreError, Unsubscribe, merge_document
from folio.store.schema import apply_runtime_pragmas, ensure_schema


LOGGER = logging.getLogger(__name__)

DEFAULT_COLLECTION = "books"


class SqliteDocumentStore:
    """Revisioned JSON documents keyed by ``(collection, document_id)``.

    Writes from this instance are delivered to local subscribers right away.
    Writes from other processes are picked up by ``poll_changes``, which the
    filesystem watcher calls whenever the database file changes.
    """

    def __init__(self, db_path: str | Path, *, collection: str = DEFAULT_COLLECTION) -> None:
        if not collection:
            raise ValueError("collection cannot be empty")
        self._db_path = Path(db_path)
        self._collection = collection
        self._connection = sqlite3.connect(str(self._db_path), isolation_level=None)
        self._connection.row_factory = sqlite3.Row
        apply_runtime_pragmas(self._connection)
        ensure_schema(self._connection)
        self._subscribers: dict[str, list[DocumentCallback]] = {}
        self._delivered: dict[str, int] = {}

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "SqliteDocumentStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _fetch(self, document_id: str) -> tuple[dict[str, Any], int] | None:
        row = self._connection.execute(
            """
            SELECT body, revision
            FROM documents
            WHERE collection = ? AND document_id = ?
            """,
            (self._collection, document_id),
        ).fetchone()
        if row is None:
            return None
        try:
            body = json.loads(row["body"])
        except json.JSONDecodeError as exc:
            raise StoreError(document_id=document_id, message=f"Stored body is not valid JSON: {exc}") from exc
        if not isinstance(body, dict):
            raise StoreError(document_id=document_id, message="Stored body is not a JSON object")
        return body, int(row["revision"])

    def get(self, document_id: str) -> dict[str, Any] | None:
        fetched = self._fetch(document_id)
        if fetched is None:
            return None
        return fetched[0]

    def revision(self, document_id: str) -> int:
        row = self._connection.execute(
            "SELECT revision FROM documents WHERE collection = ? AND document_id = ?",
            (self._collection, document_id),
        ).fetchone()
        return 0 if row is None else int(row["revision"])

    def put(self, document_id: str, body: Mapping[str, Any]) -> None:
        """Replace a whole document."""

        self._write(document_id, lambda _existing: dict(body))

    def merge_patch(self, document_id: str, partial: Mapping[str, Any]) -> None:
        self._write(document_id, lambda existing: merge_document(existing, partial))

    def _write(self, document_id: str, build) -> None:
        try:
            self._connection.execute("BEGIN IMMEDIATE")
            try:
                fetched = self._fetch(document_id)
                existing, revision = fetched if fetched is not None else ({}, 0)
                body = build(existing)
                self._connection.execute(
                    """
                    INSERT INTO documents(collection, document_id, body, revision)
                    VALUES(?, ?, ?, ?)
                    ON CONFLICT(collection, document_id) DO UPDATE SET
                        body=excluded.body,
                        revision=excluded.revision,
                        updated_at=CURRENT_TIMESTAMP
                    """,
                    (self._collection, document_id, json.dumps(body, ensure_ascii=False), revision + 1),
                )
                self._connection.execute("COMMIT")
            except BaseException:
                if self._connection.in_transaction:
                    self._connection.execute("ROLLBACK")
                raise
        except sqlite3.Error as exc:
            raise StoreError(document_id=document_id, message=f"Write failed: {exc}") from exc

        if document_id in self._subscribers:
            self._deliver(document_id, body, revision + 1)

    def subscribe(self, document_id: str, callback: DocumentCallback) -> Unsubscribe:
        callbacks = self._subscribers.setdefault(document_id, [])
        callbacks.append(callback)
        self._delivered.setdefault(document_id, self.revision(document_id))

        def _unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._subscribers.pop(document_id, None)
                self._delivered.pop(document_id, None)

        return _unsubscribe

    def poll_changes(self) -> int:
        """Deliver documents whose stored revision moved past the last delivered one."""

        delivered = 0
        for document_id in list(self._subscribers):
            if self.revision(document_id) <= self._delivered.get(document_id, 0):
                continue
            try:
                fetched = self._fetch(document_id)
            except StoreError:
                LOGGER.exception("Skipping unreadable document during poll: %s", document_id)
                continue
            if fetched is None:
                continue
            body, revision = fetched
            self._deliver(document_id, body, revision)
            delivered += 1
        return delivered

    def _deliver(self, document_id: str, body: dict[str, Any], revision: int) -> None:
        self._delivered[document_id] = max(revision, self._delivered.get(document_id, 0))
        for callback in list(self._subscribers.get(document_id, [])):
            try:
                callback(copy.deepcopy(body))
            except Exception:
                LOGGER.exception("Subscriber failed for document %s", document_id)
