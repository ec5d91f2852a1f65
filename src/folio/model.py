"""Canonical persisted shapes for one book document."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Mapping


SIDE_LEFT = "left"
SIDE_RIGHT = "right"
PAGE_SIDES = (SIDE_LEFT, SIDE_RIGHT)

POSITION_TOP = "top"
POSITION_BOTTOM = "bottom"
ZONE_POSITIONS = (POSITION_TOP, POSITION_BOTTOM)


def _coerce_static_tag(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


@dataclass(slots=True)
class ZoneState:
    """Visibility and placement of one image zone; unset members stay None."""

    hidden: bool | None = None
    position: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.hidden is not None:
            payload["hidden"] = self.hidden
        if self.position is not None:
            payload["position"] = self.position
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ZoneState":
        hidden = data.get("hidden")
        position = data.get("position")
        return cls(
            hidden=bool(hidden) if hidden is not None else None,
            position=position if position in ZONE_POSITIONS else None,
        )


@dataclass(slots=True)
class PageFieldSet:
    text_id: str
    img_id: str
    img_position: str = POSITION_TOP
    img_hidden: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "textId": self.text_id,
            "imgId": self.img_id,
            "imgPosition": self.img_position,
            "imgHidden": self.img_hidden,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PageFieldSet":
        text_id = data.get("textId")
        img_id = data.get("imgId")
        if not isinstance(text_id, str) or not isinstance(img_id, str):
            raise ValueError("page field set requires string textId and imgId")
        position = data.get("imgPosition", POSITION_TOP)
        return cls(
            text_id=text_id,
            img_id=img_id,
            img_position=position if position in ZONE_POSITIONS else POSITION_TOP,
            img_hidden=bool(data.get("imgHidden", False)),
        )


@dataclass(slots=True)
class DynamicSpreadDescriptor:
    """Persisted description of one spread inserted at runtime."""

    id: str
    chapter: str
    label: str
    left: PageFieldSet
    right: PageFieldSet
    after_dynamic_id: str | None = None
    after_static_spread: int | None = None

    def page(self, side: str) -> PageFieldSet:
        if side == SIDE_LEFT:
            return self.left
        if side == SIDE_RIGHT:
            return self.right
        raise ValueError(f"unknown page side: {side}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chapter": self.chapter,
            "label": self.label,
            "afterDynamicId": self.after_dynamic_id,
            "afterStaticSpread": self.after_static_spread,
            "pages": {
                SIDE_LEFT: self.left.to_dict(),
                SIDE_RIGHT: self.right.to_dict(),
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DynamicSpreadDescriptor":
        descriptor_id = data.get("id")
        if not isinstance(descriptor_id, str) or not descriptor_id:
            raise ValueError("dynamic spread descriptor requires a non-empty id")
        pages = data.get("pages")
        if not isinstance(pages, Mapping):
            raise ValueError(f"dynamic spread {descriptor_id} has no pages mapping")
        left = pages.get(SIDE_LEFT)
        right = pages.get(SIDE_RIGHT)
        if not isinstance(left, Mapping) or not isinstance(right, Mapping):
            raise ValueError(f"dynamic spread {descriptor_id} must define left and right pages")

        after_dynamic_id = data.get("afterDynamicId")
        return cls(
            id=descriptor_id,
            chapter=str(data.get("chapter") or ""),
            label=str(data.get("label") or ""),
            left=PageFieldSet.from_dict(left),
            right=PageFieldSet.from_dict(right),
            after_dynamic_id=after_dynamic_id if isinstance(after_dynamic_id, str) and after_dynamic_id else None,
            after_static_spread=_coerce_static_tag(data.get("afterStaticSpread")),
        )


@dataclass(slots=True)
class BookState:
    """Complete persisted state of one book (a snapshot when observed)."""

    current_spread_index: int = 0
    mobile_page_side: str = SIDE_LEFT
    texts: dict[str, str] = field(default_factory=dict)
    images: dict[str, str] = field(default_factory=dict)
    zones: dict[str, ZoneState] = field(default_factory=dict)
    editables: dict[str, str] = field(default_factory=dict)
    dynamic_spreads: list[DynamicSpreadDescriptor] = field(default_factory=list)

    @classmethod
    def default(cls) -> "BookState":
        return cls()

    def copy(self) -> "BookState":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentSpreadIndex": self.current_spread_index,
            "mobilePageSide": self.mobile_page_side,
            "texts": dict(self.texts),
            "images": dict(self.images),
            "zones": {zone_id: zone.to_dict() for zone_id, zone in self.zones.items()},
            "editables": dict(self.editables),
            "dynamicSpreads": [descriptor.to_dict() for descriptor in self.dynamic_spreads],
        }
