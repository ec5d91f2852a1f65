"""Live projection of the book: an arena of spread records plus their order.

Spread records are addressed by integer keys; ``insert_after`` and ``detach``
only touch the order list. Field lookups by persisted identifier go through
indexes that follow the placed spreads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from folio.layout import TERMINAL_CHAPTERS, BookLayout, PageSpec
from folio.model import PAGE_SIDES, POSITION_BOTTOM, POSITION_TOP


DEFAULT_MIN_ROWS = 3


@dataclass(slots=True)
class TextField:
    field_id: str
    value: str = ""
    min_rows: int = DEFAULT_MIN_ROWS
    rows: int = DEFAULT_MIN_ROWS

    def fit(self) -> int:
        """Recompute the visible row count from the content."""

        lines = self.value.count("\n") + 1 if self.value else 1
        self.rows = max(self.min_rows, lines)
        return self.rows


@dataclass(slots=True)
class ImageField:
    field_id: str
    source: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.source)


@dataclass(slots=True)
class ZoneView:
    """Image region of a page and the affordances tied to it."""

    zone_id: str
    position: str = POSITION_TOP
    hidden: bool = False
    has_image: bool = False
    add_image_visible: bool = False
    controls_visible: bool = True
    zone_marker: str = POSITION_TOP
    text_marker: str = POSITION_BOTTOM
    active_control: str | None = None

    @property
    def reading_order(self) -> tuple[str, str]:
        if self.position == POSITION_TOP:
            return ("image", "text")
        return ("text", "image")


@dataclass(slots=True)
class PageSlot:
    side: str
    text: TextField | None = None
    image: ImageField | None = None
    zone: ZoneView | None = None
    has_add_image: bool = False
    has_controls: bool = False
    page_number: int | None = None


@dataclass(slots=True)
class EditableField:
    editable_id: str
    html: str = ""


@dataclass(slots=True, eq=False)
class SpreadNode:
    key: int
    chapter: str
    label: str
    pages: dict[str, PageSlot] = field(default_factory=dict)
    static_tag: int | None = None
    dynamic_id: str | None = None
    editables: tuple[str, ...] = ()
    chapter_label: str | None = None
    spread_index: int = -1

    @property
    def is_dynamic(self) -> bool:
        return self.dynamic_id is not None

    @property
    def is_terminal(self) -> bool:
        return self.chapter in TERMINAL_CHAPTERS

    def page(self, side: str) -> PageSlot | None:
        return self.pages.get(side)

    def ordered_pages(self) -> list[PageSlot]:
        return [self.pages[side] for side in PAGE_SIDES if side in self.pages]


def build_page(
    side: str,
    *,
    text_id: str | None,
    img_id: str | None,
    img_position: str = POSITION_TOP,
    with_zone: bool = True,
    with_add_image: bool = True,
    with_controls: bool = True,
    min_rows: int = DEFAULT_MIN_ROWS,
) -> PageSlot:
    page = PageSlot(side=side)
    if text_id:
        page.text = TextField(field_id=text_id, min_rows=min_rows, rows=min_rows)
    if img_id:
        page.image = ImageField(field_id=img_id)
        if with_zone:
            page.zone = ZoneView(zone_id=img_id)
            page.has_add_image = with_add_image
            page.has_controls = with_controls
            place_zone(page, img_position)
    return page


def place_zone(page: PageSlot, position: str) -> None:
    """Order the zone and its sibling text region; markers stay mutually exclusive."""

    zone = page.zone
    if zone is None:
        return
    other = POSITION_BOTTOM if position == POSITION_TOP else POSITION_TOP
    zone.position = position
    zone.zone_marker = position
    zone.text_marker = other
    zone.active_control = position if page.has_controls else None


class LiveProjection:
    """Ordered spreads of one open book."""

    def __init__(self, *, min_rows: int = DEFAULT_MIN_ROWS) -> None:
        self.min_rows = min_rows
        self._arena: dict[int, SpreadNode] = {}
        self._order: list[int] = []
        self._next_key = 0
        self._texts: dict[str, TextField] = {}
        self._images: dict[str, ImageField] = {}
        self._zones: dict[str, tuple[ZoneView, PageSlot]] = {}
        self._editables: dict[str, EditableField] = {}

    @classmethod
    def from_layout(cls, layout: BookLayout, *, min_rows: int = DEFAULT_MIN_ROWS) -> "LiveProjection":
        projection = cls(min_rows=min_rows)
        for tag, spec in enumerate(layout.spreads):
            node = projection.create_node(chapter=spec.chapter, label=spec.label, static_tag=tag)
            node.editables = spec.editables
            for page_spec in spec.pages:
                node.pages[page_spec.side] = projection._static_page(page_spec)
            projection.insert_after(None, node)
        for index, node in enumerate(projection.nodes()):
            node.spread_index = index
        return projection

    def _static_page(self, spec: PageSpec) -> PageSlot:
        return build_page(
            spec.side,
            text_id=spec.text_id,
            img_id=spec.img_id,
            img_position=spec.img_position,
            min_rows=self.min_rows,
        )

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[SpreadNode]:
        return iter(self.nodes())

    def nodes(self) -> list[SpreadNode]:
        return [self._arena[key] for key in self._order]

    def node_at(self, index: int) -> SpreadNode:
        return self._arena[self._order[index]]

    def index_of(self, node: SpreadNode) -> int:
        return self._order.index(node.key)

    def contains(self, node: SpreadNode) -> bool:
        return node.key in self._order

    def create_node(
        self,
        *,
        chapter: str,
        label: str,
        static_tag: int | None = None,
        dynamic_id: str | None = None,
    ) -> SpreadNode:
        """Allocate a record in the arena; it is not placed until ``insert_after``."""

        node = SpreadNode(
            key=self._next_key,
            chapter=chapter,
            label=label,
            static_tag=static_tag,
            dynamic_id=dynamic_id,
        )
        self._arena[node.key] = node
        self._next_key += 1
        return node

    def insert_after(self, anchor: SpreadNode | None, node: SpreadNode) -> None:
        """Place ``node`` right after ``anchor``, or at the end when anchor is None."""

        if node.key in self._order:
            raise ValueError(f"spread {node.key} is already placed")
        if anchor is None:
            self._order.append(node.key)
        else:
            self._order.insert(self.index_of(anchor) + 1, node.key)
        self._register(node)

    def detach(self, node: SpreadNode) -> None:
        self._order.remove(node.key)
        self._arena.pop(node.key, None)
        self._unregister(node)

    def find_dynamic(self, dynamic_id: str) -> SpreadNode | None:
        for node in self.nodes():
            if node.dynamic_id == dynamic_id:
                return node
        return None

    def find_static(self, tag: int) -> SpreadNode | None:
        for node in self.nodes():
            if not node.is_dynamic and node.static_tag == tag:
                return node
        return None

    def text_field(self, field_id: str) -> TextField | None:
        return self._texts.get(field_id)

    def image_field(self, field_id: str) -> ImageField | None:
        return self._images.get(field_id)

    def zone(self, zone_id: str) -> ZoneView | None:
        entry = self._zones.get(zone_id)
        return entry[0] if entry is not None else None

    def zone_page(self, zone_id: str) -> PageSlot | None:
        entry = self._zones.get(zone_id)
        return entry[1] if entry is not None else None

    def editable(self, editable_id: str) -> EditableField | None:
        return self._editables.get(editable_id)

    def text_fields(self) -> list[TextField]:
        return list(self._texts.values())

    def image_fields(self) -> list[ImageField]:
        return list(self._images.values())

    def zone_ids(self) -> list[str]:
        return list(self._zones)

    def editable_fields(self) -> list[EditableField]:
        return list(self._editables.values())

    def _register(self, node: SpreadNode) -> None:
        for page in node.pages.values():
            if page.text is not None:
                self._texts[page.text.field_id] = page.text
            if page.image is not None:
                self._images[page.image.field_id] = page.image
            if page.zone is not None:
                self._zones[page.zone.zone_id] = (page.zone, page)
        for editable_id in node.editables:
            self._editables.setdefault(editable_id, EditableField(editable_id=editable_id))

    def _unregister(self, node: SpreadNode) -> None:
        for page in node.pages.values():
            if page.text is not None and self._texts.get(page.text.field_id) is page.text:
                del self._texts[page.text.field_id]
            if page.image is not None and self._images.get(page.image.field_id) is page.image:
                del self._images[page.image.field_id]
            if page.zone is not None and self._zones.get(page.zone.zone_id, (None,))[0] is page.zone:
                del self._zones[page.zone.zone_id]
        for editable_id in node.editables:
            self._editables.pop(editable_id, None)
