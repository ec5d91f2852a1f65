"""Build and maintain the dynamic spreads of a live projection."""

from __future__ import annotations

import copy
import logging
import random
import time
from typing import Callable, Sequence

from folio.book.navigation import Navigator
from folio.book.projection import (
    LiveProjection,
    PageSlot,
    SpreadNode,
    build_page,
)
from folio.layout import (
    SLOT_ADD_IMAGE,
    SLOT_CONTROLS,
    SLOT_IMAGE,
    SLOT_TEXT,
    SLOT_ZONE,
    SpreadTemplate,
)
from folio.model import (
    PAGE_SIDES,
    POSITION_BOTTOM,
    POSITION_TOP,
    SIDE_LEFT,
    SIDE_RIGHT,
    DynamicSpreadDescriptor,
    PageFieldSet,
)
from folio.sync.adapter import RemoteStoreAdapter


LOGGER = logging.getLogger(__name__)

CONTINUATION_SUFFIX = " cont."


def generate_dynamic_id() -> str:
    """Timestamp plus random suffix; unique within one session, not globally."""

    return f"dyn-{int(time.time() * 1000)}-{random.randrange(10000)}"


class StructuralReconciler:
    """Materializes descriptors into spreads and keeps indices and page numbers dense."""

    def __init__(
        self,
        projection: LiveProjection,
        template: SpreadTemplate,
        navigator: Navigator,
        adapter: RemoteStoreAdapter | None = None,
        *,
        id_factory: Callable[[], str] = generate_dynamic_id,
    ) -> None:
        self._projection = projection
        self._template = template
        self._navigator = navigator
        self._adapter = adapter
        self._id_factory = id_factory
        self._descriptors: list[DynamicSpreadDescriptor] = []

    @property
    def descriptors(self) -> list[DynamicSpreadDescriptor]:
        """Persisted mirror of the dynamic spreads, in creation order."""

        return list(self._descriptors)

    def _materialize(self, descriptor: DynamicSpreadDescriptor) -> SpreadNode:
        node = self._projection.create_node(
            chapter=descriptor.chapter,
            label=descriptor.label,
            dynamic_id=descriptor.id,
        )
        if self._template.chapter_label:
            node.chapter_label = descriptor.label

        for side in PAGE_SIDES:
            node.pages[side] = self._bind_page(side, descriptor.page(side), descriptor.id)
        return node

    def _bind_page(self, side: str, fields: PageFieldSet, descriptor_id: str) -> PageSlot:
        slots = self._template.slots(side)
        for slot, field_id in ((SLOT_TEXT, fields.text_id), (SLOT_IMAGE, fields.img_id)):
            if slot not in slots:
                LOGGER.debug("Template has no %s slot on %s page; skipping %s of %s", slot, side, field_id, descriptor_id)

        page = build_page(
            side,
            text_id=fields.text_id if SLOT_TEXT in slots else None,
            img_id=fields.img_id if SLOT_IMAGE in slots else None,
            img_position=fields.img_position,
            with_zone=SLOT_ZONE in slots,
            with_add_image=SLOT_ADD_IMAGE in slots,
            with_controls=SLOT_CONTROLS in slots,
            min_rows=self._projection.min_rows,
        )
        if fields.img_hidden and page.zone is not None:
            page.zone.hidden = True
            page.zone.add_image_visible = page.has_add_image
            page.zone.controls_visible = False
        return page

    def _resolve_anchor(self, descriptor: DynamicSpreadDescriptor) -> SpreadNode | None:
        if descriptor.after_dynamic_id:
            anchor = self._projection.find_dynamic(descriptor.after_dynamic_id)
            if anchor is not None:
                return anchor
            LOGGER.debug("Dynamic anchor %s of %s not found", descriptor.after_dynamic_id, descriptor.id)
        if descriptor.after_static_spread is not None:
            anchor = self._projection.find_static(descriptor.after_static_spread)
            if anchor is not None:
                return anchor
            LOGGER.debug("Static anchor %s of %s not found", descriptor.after_static_spread, descriptor.id)
        return None

    def rebuild(self, descriptors: Sequence[DynamicSpreadDescriptor]) -> None:
        """Insert one spread per descriptor, in order, then reindex and renumber.

        A descriptor whose anchor does not resolve (yet) is appended at the end.
        """

        accepted: list[DynamicSpreadDescriptor] = []
        for descriptor in descriptors:
            if self._projection.find_dynamic(descriptor.id) is not None:
                LOGGER.warning("Skipping duplicate dynamic spread %s", descriptor.id)
                continue
            node = self._materialize(descriptor)
            anchor = self._resolve_anchor(descriptor)
            if anchor is None:
                LOGGER.info("Appending dynamic spread %s at the end: no anchor resolved", descriptor.id)
            self._projection.insert_after(anchor, node)
            accepted.append(copy.deepcopy(descriptor))

        self._descriptors.extend(accepted)
        self.reindex()
        self.renumber_pages()

    def reindex(self) -> None:
        for index, node in enumerate(self._projection.nodes()):
            node.spread_index = index

    def renumber_pages(self) -> None:
        number = 1
        for node in self._projection.nodes():
            for page in node.ordered_pages():
                if node.is_terminal:
                    page.page_number = None
                    continue
                page.page_number = number
                number += 1

    def _new_id(self) -> str:
        taken = {descriptor.id for descriptor in self._descriptors}
        while True:
            candidate = self._id_factory()
            if candidate not in taken and self._projection.find_dynamic(candidate) is None:
                return candidate

    def _preceding_static_tag(self, node: SpreadNode) -> int | None:
        index = self._projection.index_of(node)
        for candidate in reversed(self._projection.nodes()[: index + 1]):
            if not candidate.is_dynamic:
                return candidate.static_tag
        return None

    def _save(self) -> None:
        if self._adapter is not None:
            self._adapter.save_dynamic_spreads(self._descriptors)

    def insert_after_current(self, current_node: SpreadNode) -> SpreadNode:
        if not self._projection.contains(current_node):
            raise ValueError("current spread is not part of the projection")

        dynamic_id = self._new_id()
        descriptor = DynamicSpreadDescriptor(
            id=dynamic_id,
            chapter=current_node.chapter,
            label=(current_node.label or "") + CONTINUATION_SUFFIX,
            left=PageFieldSet(
                text_id=f"{dynamic_id}-tl",
                img_id=f"{dynamic_id}-il",
                img_position=POSITION_TOP,
            ),
            right=PageFieldSet(
                text_id=f"{dynamic_id}-tr",
                img_id=f"{dynamic_id}-ir",
                img_position=POSITION_BOTTOM,
            ),
            after_dynamic_id=current_node.dynamic_id,
            after_static_spread=(
                self._preceding_static_tag(current_node)
                if current_node.is_dynamic
                else current_node.static_tag
            ),
        )

        node = self._materialize(descriptor)
        self._projection.insert_after(current_node, node)
        self.reindex()
        self.renumber_pages()

        self._descriptors.append(descriptor)
        self._save()

        self._navigator.activate(node.spread_index, 1)
        return node

    def remove(self, node: SpreadNode) -> None:
        if not node.is_dynamic:
            raise ValueError("only dynamic spreads can be removed")
        if not self._projection.contains(node):
            raise ValueError(f"dynamic spread {node.dynamic_id} is not part of the projection")

        removed_index = self._projection.index_of(node)
        removed = next((item for item in self._descriptors if item.id == node.dynamic_id), None)

        self._projection.detach(node)
        self._descriptors = [item for item in self._descriptors if item.id != node.dynamic_id]
        if removed is not None:
            for descriptor in self._descriptors:
                if descriptor.after_dynamic_id == removed.id:
                    descriptor.after_dynamic_id = removed.after_dynamic_id
                    descriptor.after_static_spread = removed.after_static_spread
        self._save()

        self.reindex()
        self.renumber_pages()

        if removed_index < self._navigator.current:
            self._navigator.current -= 1
        self._navigator.clamp()

    def serialize(self) -> list[DynamicSpreadDescriptor]:
        """Read the descriptors back out of the live projection."""

        result: list[DynamicSpreadDescriptor] = []
        for descriptor in self._descriptors:
            node = self._projection.find_dynamic(descriptor.id)
            if node is None:
                continue
            pages: dict[str, PageFieldSet] = {}
            for side in PAGE_SIDES:
                stored = descriptor.page(side)
                page = node.page(side)
                zone = page.zone if page is not None else None
                pages[side] = PageFieldSet(
                    text_id=page.text.field_id if page is not None and page.text is not None else stored.text_id,
                    img_id=page.image.field_id if page is not None and page.image is not None else stored.img_id,
                    img_position=zone.position if zone is not None else stored.img_position,
                    img_hidden=zone.hidden if zone is not None else stored.img_hidden,
                )
            result.append(
                DynamicSpreadDescriptor(
                    id=descriptor.id,
                    chapter=node.chapter,
                    label=node.label,
                    left=pages[SIDE_LEFT],
                    right=pages[SIDE_RIGHT],
                    after_dynamic_id=descriptor.after_dynamic_id,
                    after_static_spread=descriptor.after_static_spread,
                )
            )
        return result
