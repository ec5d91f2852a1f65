"""Authored static book layout and the template for inserted spreads."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any, Mapping

from folio.model import PAGE_SIDES, POSITION_BOTTOM, POSITION_TOP, ZONE_POSITIONS


SLOT_TEXT = "text"
SLOT_IMAGE = "image"
SLOT_ZONE = "zone"
SLOT_ADD_IMAGE = "add_image"
SLOT_CONTROLS = "controls"
TEMPLATE_SLOTS = frozenset({SLOT_TEXT, SLOT_IMAGE, SLOT_ZONE, SLOT_ADD_IMAGE, SLOT_CONTROLS})

TERMINAL_CHAPTERS = frozenset({"cover", "end"})


@dataclass(slots=True)
class LayoutError(Exception):
    """Raised when a layout file cannot be turned into a BookLayout."""

    path: Path | None
    message: str

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message} (path={self.path})"


@dataclass(frozen=True, slots=True)
class PageSpec:
    side: str
    text_id: str | None = None
    img_id: str | None = None
    img_position: str = POSITION_TOP


@dataclass(frozen=True, slots=True)
class StaticSpreadSpec:
    chapter: str
    label: str
    pages: tuple[PageSpec, ...] = ()
    editables: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SpreadTemplate:
    """Slots each side of a freshly inserted spread carries."""

    left: frozenset[str] = TEMPLATE_SLOTS
    right: frozenset[str] = TEMPLATE_SLOTS
    chapter_label: bool = True

    def slots(self, side: str) -> frozenset[str]:
        return self.left if side == "left" else self.right


@dataclass(frozen=True, slots=True)
class BookLayout:
    spreads: tuple[StaticSpreadSpec, ...]
    template: SpreadTemplate = field(default_factory=SpreadTemplate)


def _interior(number: int, label: str) -> StaticSpreadSpec:
    return StaticSpreadSpec(
        chapter=f"chapter-{number}",
        label=label,
        pages=(
            PageSpec("left", text_id=f"page-{number}a", img_id=f"img-{number}a", img_position=POSITION_TOP),
            PageSpec("right", text_id=f"page-{number}b", img_id=f"img-{number}b", img_position=POSITION_BOTTOM),
        ),
        editables=(f"chapter-title-{number}",),
    )


def default_layout() -> BookLayout:
    """Cover, three interior spreads and a back cover."""

    return BookLayout(
        spreads=(
            StaticSpreadSpec(chapter="cover", label="Portada", editables=("book-title", "book-subtitle")),
            _interior(1, "Capítulo 1"),
            _interior(2, "Capítulo 2"),
            _interior(3, "Capítulo 3"),
            StaticSpreadSpec(chapter="end", label="Contraportada", editables=("end-note",)),
        ),
    )


def _optional_str(value: Any, *, name: str, path: Path | None) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise LayoutError(path=path, message=f"{name} must be a non-empty string")
    return value


def _parse_page(data: Any, *, path: Path | None) -> PageSpec:
    if not isinstance(data, Mapping):
        raise LayoutError(path=path, message="each page must be an object")
    side = data.get("side")
    if side not in PAGE_SIDES:
        raise LayoutError(path=path, message=f"page side must be one of {PAGE_SIDES}, got {side!r}")
    position = data.get("imgPosition", POSITION_TOP)
    if position not in ZONE_POSITIONS:
        raise LayoutError(path=path, message=f"imgPosition must be one of {ZONE_POSITIONS}, got {position!r}")
    return PageSpec(
        side=side,
        text_id=_optional_str(data.get("text"), name="text", path=path),
        img_id=_optional_str(data.get("image"), name="image", path=path),
        img_position=position,
    )


def _parse_template(data: Any, *, path: Path | None) -> SpreadTemplate:
    if data is None:
        return SpreadTemplate()
    if not isinstance(data, Mapping):
        raise LayoutError(path=path, message="template must be an object")

    sides: dict[str, frozenset[str]] = {}
    for side in PAGE_SIDES:
        raw_slots = data.get(side, sorted(TEMPLATE_SLOTS))
        if not isinstance(raw_slots, list):
            raise LayoutError(path=path, message=f"template.{side} must be a list of slot names")
        unknown = set(raw_slots) - TEMPLATE_SLOTS
        if unknown:
            raise LayoutError(path=path, message=f"unknown template slots: {', '.join(sorted(map(str, unknown)))}")
        sides[side] = frozenset(raw_slots)

    return SpreadTemplate(
        left=sides["left"],
        right=sides["right"],
        chapter_label=bool(data.get("chapterLabel", True)),
    )


def parse_layout(data: Any, *, path: Path | None = None) -> BookLayout:
    if not isinstance(data, Mapping):
        raise LayoutError(path=path, message="layout must be a JSON object")
    raw_spreads = data.get("spreads")
    if not isinstance(raw_spreads, list) or not raw_spreads:
        raise LayoutError(path=path, message="layout needs a non-empty 'spreads' list")

    spreads: list[StaticSpreadSpec] = []
    for raw in raw_spreads:
        if not isinstance(raw, Mapping):
            raise LayoutError(path=path, message="each spread must be an object")
        chapter = raw.get("chapter")
        if not isinstance(chapter, str) or not chapter:
            raise LayoutError(path=path, message="each spread needs a chapter")
        editables = raw.get("editables", [])
        if not isinstance(editables, list) or not all(isinstance(item, str) for item in editables):
            raise LayoutError(path=path, message="editables must be a list of strings")
        spreads.append(
            StaticSpreadSpec(
                chapter=chapter,
                label=str(raw.get("label") or ""),
                pages=tuple(_parse_page(page, path=path) for page in raw.get("pages", [])),
                editables=tuple(editables),
            )
        )

    return BookLayout(spreads=tuple(spreads), template=_parse_template(data.get("template"), path=path))


def load_layout(path: str | Path) -> BookLayout:
    layout_path = Path(path)
    try:
        data = json.loads(layout_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise LayoutError(path=layout_path, message=f"cannot read layout: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise LayoutError(path=layout_path, message=f"layout is not valid JSON: {exc}") from exc
    return parse_layout(data, path=layout_path)
