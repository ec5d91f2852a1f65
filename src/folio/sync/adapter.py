"""Best-effort bridge between one book document and its store."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

from folio.model import BookState, DynamicSpreadDescriptor, ZoneState
from folio.store.base import DocumentStore, Unsubscribe
from folio.sync.codec import decode_document


LOGGER = logging.getLogger(__name__)


class RemoteStoreAdapter:
    """Load, patch and follow one book; store failures are logged, never raised."""

    def __init__(self, store: DocumentStore, document_id: str) -> None:
        if not document_id:
            raise ValueError("document_id cannot be empty")
        self._store = store
        self._document_id = document_id

    @property
    def document_id(self) -> str:
        return self._document_id

    def load(self) -> BookState:
        try:
            raw = self._store.get(self._document_id)
            return decode_document(raw)
        except Exception:
            LOGGER.exception("Failed to load book %s; starting from an empty state", self._document_id)
            return BookState.default()

    def patch(self, partial: Mapping[str, Any]) -> None:
        try:
            self._store.merge_patch(self._document_id, partial)
        except Exception as exc:
            LOGGER.warning("Failed to save book %s: %s", self._document_id, exc)

    def subscribe(self, callback: Callable[[BookState], None]) -> Unsubscribe:
        def _on_document(raw: dict[str, Any]) -> None:
            try:
                snapshot = decode_document(raw)
            except Exception:
                LOGGER.exception("Dropping undecodable change for book %s", self._document_id)
                return
            callback(snapshot)

        return self._store.subscribe(self._document_id, _on_document)

    def save_current_spread(self, index: int) -> None:
        self.patch({"currentSpreadIndex": index})

    def save_mobile_page_side(self, side: str) -> None:
        self.patch({"mobilePageSide": side})

    def save_text(self, field_id: str, value: str) -> None:
        self.patch({"texts": {field_id: value}})

    def save_image(self, field_id: str, source: str) -> None:
        self.patch({"images": {field_id: source}})

    def save_zone(self, zone_id: str, zone: ZoneState) -> None:
        """Write only the zone members that are set."""

        update = zone.to_dict()
        if not update:
            return
        self.patch({"zones": {zone_id: update}})

    def save_dynamic_spreads(self, descriptors: Sequence[DynamicSpreadDescriptor]) -> None:
        self.patch({"dynamicSpreads": [descriptor.to_dict() for descriptor in descriptors]})

    def save_editable(self, editable_id: str, html: str) -> None:
        self.patch({"editables": {editable_id: html}})
