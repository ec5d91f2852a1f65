"""Document store substrates and change notification."""

from folio.store.base import DocumentStore, StoreError, merge_document
from folio.store.memory import MemoryDocumentStore
from folio.store.sqlite_store import SqliteDocumentStore

__all__ = [
    "DocumentStore",
    "MemoryDocumentStore",
    "SqliteDocumentStore",
    "StoreError",
    "merge_document",
]
