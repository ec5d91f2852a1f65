"""Write snapshot content into the fields of a live projection."""

from __future__ import annotations

from enum import Enum
import logging

from folio.book.projection import LiveProjection, place_zone
from folio.model import ZONE_POSITIONS, BookState


LOGGER = logging.getLogger(__name__)


class ProjectionScope(str, Enum):
    FULL = "full"
    DELTA = "delta"


class ContentProjector:
    """Field-level setters keyed by persisted identifiers.

    ``field_writes`` counts every setter call that reached a bound field.
    """

    def __init__(self, projection: LiveProjection) -> None:
        self._projection = projection
        self.field_writes = 0

    def set_text(self, field_id: str, value: str) -> bool:
        text = self._projection.text_field(field_id)
        if text is None:
            return False
        text.value = value
        text.fit()
        self.field_writes += 1
        return True

    def set_image(self, field_id: str, source: str) -> bool:
        image = self._projection.image_field(field_id)
        if image is None:
            return False
        image.source = source
        zone = self._projection.zone(field_id)
        if zone is not None:
            zone.has_image = bool(source)
        self.field_writes += 1
        return True

    def set_zone_hidden(self, zone_id: str, hidden: bool) -> bool:
        zone = self._projection.zone(zone_id)
        page = self._projection.zone_page(zone_id)
        if zone is None or page is None:
            return False
        zone.hidden = hidden
        zone.add_image_visible = hidden and page.has_add_image
        zone.controls_visible = not hidden and page.has_controls
        self.field_writes += 1
        return True

    def set_zone_position(self, zone_id: str, position: str) -> bool:
        if position not in ZONE_POSITIONS:
            raise ValueError(f"zone position must be one of {ZONE_POSITIONS}, got {position!r}")
        page = self._projection.zone_page(zone_id)
        if page is None:
            return False
        if page.text is None:
            LOGGER.debug("Zone %s has no sibling text region; position left as is", zone_id)
            return False
        place_zone(page, position)
        self.field_writes += 1
        return True

    def set_editable(self, editable_id: str, html: str) -> bool:
        editable = self._projection.editable(editable_id)
        if editable is None:
            return False
        editable.html = html
        self.field_writes += 1
        return True

    def apply(self, snapshot: BookState, scope: ProjectionScope = ProjectionScope.FULL) -> None:
        """Project every field of ``snapshot`` that the projection has a slot for."""

        full = scope is ProjectionScope.FULL

        for text in self._projection.text_fields():
            value = snapshot.texts.get(text.field_id)
            if value is None or (not full and value == text.value):
                continue
            self.set_text(text.field_id, value)

        for image in self._projection.image_fields():
            source = snapshot.images.get(image.field_id)
            if source is None or (not full and source == image.source):
                continue
            self.set_image(image.field_id, source)

        for zone_id in self._projection.zone_ids():
            zone_state = snapshot.zones.get(zone_id)
            if zone_state is None:
                continue
            if zone_state.hidden is not None:
                self.set_zone_hidden(zone_id, zone_state.hidden)
            if zone_state.position is not None:
                self.set_zone_position(zone_id, zone_state.position)

        for editable in self._projection.editable_fields():
            html = snapshot.editables.get(editable.editable_id)
            if html is None or (not full and html == editable.html):
                continue
            self.set_editable(editable.editable_id, html)
