"""Active spread and mobile page side of one open book."""

from __future__ import annotations

import logging

from folio.book.projection import LiveProjection, SpreadNode
from folio.model import PAGE_SIDES, SIDE_LEFT, SIDE_RIGHT
from folio.sync.adapter import RemoteStoreAdapter


LOGGER = logging.getLogger(__name__)

MOBILE_SIDE_LABELS = {SIDE_LEFT: "· pág A", SIDE_RIGHT: "· pág B"}


class Navigator:
    """Moves through spreads; on narrow viewports shows one page at a time."""

    def __init__(
        self,
        projection: LiveProjection,
        adapter: RemoteStoreAdapter | None = None,
        *,
        is_mobile: bool = False,
    ) -> None:
        self._projection = projection
        self._adapter = adapter
        self.current = 0
        self.mobile_page_side = SIDE_LEFT
        self.is_mobile = is_mobile

    def current_node(self) -> SpreadNode:
        return self._projection.node_at(self.current)

    @staticmethod
    def is_interior(node: SpreadNode) -> bool:
        return not node.is_terminal

    def can_go_back(self) -> bool:
        return self.current > 0

    def can_go_forward(self) -> bool:
        return self.current < len(self._projection) - 1

    def _is_split(self, node: SpreadNode) -> bool:
        return self.is_interior(node) and len(node.pages) >= 2

    def _set_side(self, side: str) -> None:
        self.mobile_page_side = side
        if self._adapter is not None:
            self._adapter.save_mobile_page_side(side)

    def _flip_mobile_page(self, direction: int) -> bool:
        node = self.current_node()
        if not self._is_split(node):
            return False
        if direction > 0 and self.mobile_page_side == SIDE_LEFT:
            self._set_side(SIDE_RIGHT)
            return True
        if direction < 0 and self.mobile_page_side == SIDE_RIGHT:
            self._set_side(SIDE_LEFT)
            return True
        return False

    def activate(self, index: int, direction: int) -> None:
        """Enter spread ``index``; forward shows its left page, backward its right."""

        self._set_side(SIDE_LEFT if direction > 0 else SIDE_RIGHT)
        self.current = index
        if self._adapter is not None:
            self._adapter.save_current_spread(index)

    def turn_page(self, direction: int) -> bool:
        if direction == 0:
            return False
        if self.is_mobile and self._flip_mobile_page(direction):
            return True

        target = self.current + (1 if direction > 0 else -1)
        if target < 0 or target >= len(self._projection):
            return False
        self.activate(target, direction)
        return True

    def jump_to(self, index: int) -> bool:
        if index < 0 or index >= len(self._projection):
            LOGGER.debug("Ignoring jump to out-of-range spread %d", index)
            return False
        self.current = index
        return True

    def restore(self, index: int, side: str) -> None:
        """Restore a persisted position without writing it back."""

        self.mobile_page_side = side if side in PAGE_SIDES else SIDE_LEFT
        if not self.jump_to(index):
            self.current = min(max(index, 0), max(len(self._projection) - 1, 0))

    def clamp(self) -> None:
        total = len(self._projection)
        if self.current >= total:
            self.current = max(total - 1, 0)
        elif self.current < 0:
            self.current = 0

    def label(self) -> str:
        node = self.current_node()
        text = node.label or ""
        if self.is_mobile and self.is_interior(node):
            text = f"{text} {MOBILE_SIDE_LABELS[self.mobile_page_side]}"
        return text
