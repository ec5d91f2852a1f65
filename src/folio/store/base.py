"""Shared contract for key-value document stores."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, runtime_checkable


DocumentCallback = Callable[[dict[str, Any]], None]
Unsubscribe = Callable[[], None]


@dataclass(slots=True)
class StoreError(RuntimeError):
    """Raised by store substrates for unreadable documents and failed writes."""

    document_id: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (document_id={self.document_id})"


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol every document store substrate implements."""

    def get(self, document_id: str) -> dict[str, Any] | None:
        """Return the full raw document, or None when it does not exist."""

    def merge_patch(self, document_id: str, partial: Mapping[str, Any]) -> None:
        """Merge ``partial`` into the document, creating it when missing."""

    def subscribe(self, document_id: str, callback: DocumentCallback) -> Unsubscribe:
        """Deliver the full document to ``callback`` after every observed write."""


def merge_document(existing: Mapping[str, Any], partial: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``existing`` with ``partial`` merged in.

    Mappings merge recursively so writing one key of ``texts`` keeps its
    siblings; lists and scalars replace the stored value wholesale.
    """

    merged = copy.deepcopy(dict(existing))
    for key, value in partial.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_document(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
