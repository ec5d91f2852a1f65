"""Session-scoped context for one open book."""

from __future__ import annotations

import logging
from typing import Any, Callable

from folio.book.navigation import Navigator
from folio.book.projection import DEFAULT_MIN_ROWS, LiveProjection, SpreadNode
from folio.book.projector import ContentProjector, ProjectionScope
from folio.book.reconciler import StructuralReconciler, generate_dynamic_id
from folio.layout import BookLayout
from folio.model import ZONE_POSITIONS, BookState, ZoneState
from folio.store.base import Unsubscribe
from folio.sync.adapter import RemoteStoreAdapter
from folio.sync.editing import KIND_EDITABLE, EditLeases
from folio.sync.merge import MergeReport, RemoteMergeFilter


LOGGER = logging.getLogger(__name__)


class BookSession:
    """Owns the projection and every component that reads or writes it.

    Local edits update the projection first and then patch the store; the
    store's change notifications come back through ``handle_remote``.
    """

    def __init__(
        self,
        adapter: RemoteStoreAdapter,
        layout: BookLayout,
        *,
        min_rows: int = DEFAULT_MIN_ROWS,
        is_mobile: bool = False,
        id_factory: Callable[[], str] = generate_dynamic_id,
    ) -> None:
        self.adapter = adapter
        self.layout = layout
        self.projection = LiveProjection.from_layout(layout, min_rows=min_rows)
        self.navigator = Navigator(self.projection, adapter, is_mobile=is_mobile)
        self.reconciler = StructuralReconciler(
            self.projection,
            layout.template,
            self.navigator,
            adapter,
            id_factory=id_factory,
        )
        self.projector = ContentProjector(self.projection)
        self.leases = EditLeases()
        self.merge_filter = RemoteMergeFilter(self.projector, self.leases)
        self.last_report: MergeReport | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._opened = False

    def open(self, *, subscribe: bool = True) -> BookState:
        if self._opened:
            raise RuntimeError("session is already open")
        snapshot = self.adapter.load()
        self.merge_filter.reset(snapshot)

        self.reconciler.rebuild(snapshot.dynamic_spreads)
        self.projector.apply(snapshot, ProjectionScope.FULL)
        self.navigator.restore(snapshot.current_spread_index, snapshot.mobile_page_side)

        if subscribe:
            self._unsubscribe = self.adapter.subscribe(self.handle_remote)
        self._opened = True
        LOGGER.info(
            "Opened book %s: %d spreads (%d dynamic)",
            self.adapter.document_id,
            len(self.projection),
            len(self.reconciler.descriptors),
        )
        return snapshot

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._opened = False

    def handle_remote(self, snapshot: BookState) -> MergeReport:
        report = self.merge_filter.merge(snapshot)
        self.last_report = report
        if report.applied or report.suppressed:
            LOGGER.info(
                "Merged remote change into %s: %d applied, %d kept local",
                self.adapter.document_id,
                len(report.applied),
                len(report.suppressed),
            )
        return report

    def begin_edit(self, kind: str, field_id: str) -> None:
        self.leases.acquire(kind, field_id)

    def end_edit(self, kind: str, field_id: str) -> None:
        """Release the lease; rich-text editables are saved at this point."""

        self.leases.release(kind, field_id)
        if kind == KIND_EDITABLE:
            editable = self.projection.editable(field_id)
            if editable is not None:
                self.adapter.save_editable(field_id, editable.html.strip())

    def edit_text(self, field_id: str, value: str) -> None:
        if not self.projector.set_text(field_id, value):
            LOGGER.debug("Ignoring edit of unknown text field %s", field_id)
            return
        self.adapter.save_text(field_id, value)

    def edit_editable(self, editable_id: str, html: str) -> None:
        """Update rich content while typing; persisted on ``end_edit``."""

        if not self.projector.set_editable(editable_id, html):
            LOGGER.debug("Ignoring edit of unknown editable %s", editable_id)

    def set_image(self, field_id: str, source: str) -> None:
        if not self.projector.set_image(field_id, source):
            LOGGER.debug("Ignoring image for unknown field %s", field_id)
            return
        self.adapter.save_image(field_id, source)

    def hide_zone(self, zone_id: str) -> None:
        if self.projector.set_zone_hidden(zone_id, True):
            self.adapter.save_zone(zone_id, ZoneState(hidden=True))

    def show_zone(self, zone_id: str) -> None:
        if self.projector.set_zone_hidden(zone_id, False):
            self.adapter.save_zone(zone_id, ZoneState(hidden=False))

    def move_zone(self, zone_id: str, position: str) -> None:
        if position not in ZONE_POSITIONS:
            raise ValueError(f"zone position must be one of {ZONE_POSITIONS}, got {position!r}")
        if self.projector.set_zone_position(zone_id, position):
            self.adapter.save_zone(zone_id, ZoneState(position=position))

    def add_page(self) -> SpreadNode:
        return self.reconciler.insert_after_current(self.navigator.current_node())

    def delete_page(self, node: SpreadNode) -> None:
        self.reconciler.remove(node)

    def turn_page(self, direction: int) -> bool:
        return self.navigator.turn_page(direction)

    def structure(self) -> dict[str, Any]:
        spreads: list[dict[str, Any]] = []
        for node in self.projection.nodes():
            spreads.append(
                {
                    "index": node.spread_index,
                    "chapter": node.chapter,
                    "label": node.label,
                    "dynamic_id": node.dynamic_id,
                    "static_tag": node.static_tag,
                    "pages": [
                        {
                            "side": page.side,
                            "page_number": page.page_number,
                            "text_id": page.text.field_id if page.text is not None else None,
                            "img_id": page.image.field_id if page.image is not None else None,
                            "zone_hidden": page.zone.hidden if page.zone is not None else None,
                            "zone_position": page.zone.position if page.zone is not None else None,
                        }
                        for page in node.ordered_pages()
                    ],
                }
            )
        return {
            "book_id": self.adapter.document_id,
            "current": self.navigator.current,
            "mobile_page_side": self.navigator.mobile_page_side,
            "label": self.navigator.label(),
            "spreads": spreads,
        }
