"""Apply only the changed, non-leased fields of an incoming snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Callable

from folio.model import BookState
from folio.sync.editing import KIND_EDITABLE, KIND_IMAGE, KIND_TEXT, EditLeases

if TYPE_CHECKING:
    from folio.book.projector import ContentProjector


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class MergeReport:
    applied: list[tuple[str, str]] = field(default_factory=list)
    suppressed: list[tuple[str, str]] = field(default_factory=list)
    unchanged: int = 0


class RemoteMergeFilter:
    """Diffs each incoming snapshot against the last one it saw.

    A field under a local edit lease is never overwritten; that remote value
    is dropped (last write wins once the local edit is saved).
    """

    def __init__(
        self,
        projector: ContentProjector,
        leases: EditLeases,
        previous: BookState | None = None,
    ) -> None:
        self._projector = projector
        self._leases = leases
        self._previous = previous.copy() if previous is not None else BookState.default()

    @property
    def previous(self) -> BookState:
        return self._previous

    def reset(self, snapshot: BookState) -> None:
        self._previous = snapshot.copy()

    def merge(self, incoming: BookState) -> MergeReport:
        report = MergeReport()
        sections: tuple[tuple[str, str, dict[str, str], dict[str, str], Callable[[str, str], bool]], ...] = (
            ("texts", KIND_TEXT, self._previous.texts, incoming.texts, self._projector.set_text),
            ("images", KIND_IMAGE, self._previous.images, incoming.images, self._projector.set_image),
            ("editables", KIND_EDITABLE, self._previous.editables, incoming.editables, self._projector.set_editable),
        )

        for section, kind, before, after, setter in sections:
            for key, value in after.items():
                if before.get(key) == value:
                    report.unchanged += 1
                    continue
                if self._leases.is_held(kind, key):
                    LOGGER.debug("Keeping local edit of %s.%s over remote value", section, key)
                    report.suppressed.append((section, key))
                    continue
                if setter(key, value):
                    report.applied.append((section, key))

        self._previous = incoming.copy()
        return report
