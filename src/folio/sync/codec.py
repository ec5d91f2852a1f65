"""Versioned decoder from raw stored documents to the canonical BookState.

Two encodings of the nested sections exist in stored documents:

* current: real nested objects, ``{"texts": {"page-1a": "..."}}``
* legacy: dot-path keys at the top level, ``{"texts.page-1a": "..."}`` and
  ``{"zones.img-1a.hidden": true}``

Both are folded into one ``BookState``; when both carry the same logical
field the nested value wins. Nothing past this module sees either encoding.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from folio.model import (
    PAGE_SIDES,
    SIDE_LEFT,
    ZONE_POSITIONS,
    BookState,
    DynamicSpreadDescriptor,
    ZoneState,
)


LOGGER = logging.getLogger(__name__)

ZONES_PREFIX = "zones."


def _flat_entries(raw: Mapping[str, Any], section: str) -> dict[str, Any]:
    prefix = f"{section}."
    return {
        key[len(prefix):]: value
        for key, value in raw.items()
        if key.startswith(prefix) and len(key) > len(prefix)
    }


def _nested_section(raw: Mapping[str, Any], section: str) -> dict[str, Any]:
    value = raw.get(section)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        LOGGER.warning("Ignoring non-mapping '%s' section of type %s", section, type(value).__name__)
        return {}
    return dict(value)


def _string_map(entries: Mapping[str, Any], section: str) -> dict[str, str]:
    result: dict[str, str] = {}
    for key, value in entries.items():
        if isinstance(value, str):
            result[key] = value
        else:
            LOGGER.warning("Ignoring non-string %s value for %s", section, key)
    return result


def _decode_string_section(raw: Mapping[str, Any], section: str) -> dict[str, str]:
    merged = _flat_entries(raw, section)
    merged.update(_nested_section(raw, section))
    return _string_map(merged, section)


def _decode_zones(raw: Mapping[str, Any]) -> dict[str, ZoneState]:
    members: dict[str, dict[str, Any]] = {}

    for key, value in raw.items():
        if not key.startswith(ZONES_PREFIX):
            continue
        zone_id, _, member = key[len(ZONES_PREFIX):].partition(".")
        if zone_id and member:
            members.setdefault(zone_id, {})[member] = value

    for zone_id, zone in _nested_section(raw, "zones").items():
        if not isinstance(zone, Mapping):
            LOGGER.warning("Ignoring non-mapping zone state for %s", zone_id)
            continue
        members.setdefault(zone_id, {}).update(zone)

    zones: dict[str, ZoneState] = {}
    for zone_id, data in members.items():
        position = data.get("position")
        if position is not None and position not in ZONE_POSITIONS:
            LOGGER.warning("Ignoring unknown zone position %r for %s", position, zone_id)
        zones[zone_id] = ZoneState.from_dict(data)
    return zones


def _decode_descriptors(value: Any) -> list[DynamicSpreadDescriptor]:
    if value is None:
        return []
    if not isinstance(value, list):
        LOGGER.warning("Ignoring dynamicSpreads of type %s", type(value).__name__)
        return []

    descriptors: list[DynamicSpreadDescriptor] = []
    for index, item in enumerate(value):
        if not isinstance(item, Mapping):
            LOGGER.warning("Skipping dynamic spread #%d: not an object", index)
            continue
        try:
            descriptors.append(DynamicSpreadDescriptor.from_dict(item))
        except ValueError as exc:
            LOGGER.warning("Skipping dynamic spread #%d: %s", index, exc)
    return descriptors


def _decode_spread_index(raw: Mapping[str, Any]) -> int:
    value = raw.get("currentSpreadIndex", raw.get("currentSpread", 0))
    if isinstance(value, bool):
        return 0
    try:
        index = int(value)
    except (TypeError, ValueError):
        LOGGER.warning("Ignoring invalid current spread index %r", value)
        return 0
    return max(index, 0)


def decode_document(raw: Mapping[str, Any] | None) -> BookState:
    """Fold a raw stored document into a fresh canonical BookState."""

    if raw is None:
        return BookState.default()

    side = raw.get("mobilePageSide", SIDE_LEFT)
    return BookState(
        current_spread_index=_decode_spread_index(raw),
        mobile_page_side=side if side in PAGE_SIDES else SIDE_LEFT,
        texts=_decode_string_section(raw, "texts"),
        images=_decode_string_section(raw, "images"),
        zones=_decode_zones(raw),
        editables=_decode_string_section(raw, "editables"),
        dynamic_spreads=_decode_descriptors(raw.get("dynamicSpreads")),
    )
