"""Explicit per-field edit leases held by the input layer."""

from __future__ import annotations


KIND_TEXT = "text"
KIND_IMAGE = "image"
KIND_EDITABLE = "editable"
FIELD_KINDS = (KIND_TEXT, KIND_IMAGE, KIND_EDITABLE)


class EditLeases:
    """Set of fields currently being edited locally.

    The input layer acquires a lease on focus and releases it on blur or
    commit; remote merges leave leased fields untouched.
    """

    def __init__(self) -> None:
        self._held: set[tuple[str, str]] = set()

    def _key(self, kind: str, field_id: str) -> tuple[str, str]:
        if kind not in FIELD_KINDS:
            raise ValueError(f"unknown field kind: {kind}")
        return kind, field_id

    def acquire(self, kind: str, field_id: str) -> None:
        self._held.add(self._key(kind, field_id))

    def release(self, kind: str, field_id: str) -> None:
        self._held.discard(self._key(kind, field_id))

    def is_held(self, kind: str, field_id: str) -> bool:
        return self._key(kind, field_id) in self._held

    def held(self) -> frozenset[tuple[str, str]]:
        return frozenset(self._held)
