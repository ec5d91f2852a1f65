"""In-process document store with synchronous change notification."""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping

from folio.store.base import DocumentCallback, Unsubscribe, merge_document


LOGGER = logging.getLogger(__name__)


class MemoryDocumentStore:
    """Dictionary-backed store; every write is echoed to all subscribers."""

    def __init__(self, documents: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._documents: dict[str, dict[str, Any]] = {
            document_id: copy.deepcopy(dict(body)) for document_id, body in (documents or {}).items()
        }
        self._subscribers: dict[str, list[DocumentCallback]] = {}

    def get(self, document_id: str) -> dict[str, Any] | None:
        body = self._documents.get(document_id)
        if body is None:
            return None
        return copy.deepcopy(body)

    def put(self, document_id: str, body: Mapping[str, Any]) -> None:
        """Replace a whole document (used to seed legacy encodings)."""

        self._documents[document_id] = copy.deepcopy(dict(body))
        self._notify(document_id)

    def merge_patch(self, document_id: str, partial: Mapping[str, Any]) -> None:
        existing = self._documents.get(document_id, {})
        self._documents[document_id] = merge_document(existing, partial)
        self._notify(document_id)

    def subscribe(self, document_id: str, callback: DocumentCallback) -> Unsubscribe:
        callbacks = self._subscribers.setdefault(document_id, [])
        callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return _unsubscribe

    def _notify(self, document_id: str) -> None:
        for callback in list(self._subscribers.get(document_id, [])):
            try:
                callback(copy.deepcopy(self._documents[document_id]))
            except Exception:
                LOGGER.exception("Subscriber failed for document %s", document_id)
