from __future__ import annotations

from typing import Callable, Iterable

import pytest

from folio.book.navigation import Navigator
from folio.book.projection import LiveProjection
from folio.book.reconciler import StructuralReconciler, generate_dynamic_id
from folio.layout import BookLayout, PageSpec, SpreadTemplate, StaticSpreadSpec
from folio.model import DynamicSpreadDescriptor, PageFieldSet
from folio.store.memory import MemoryDocumentStore
from folio.sync.adapter import RemoteStoreAdapter


def _layout() -> BookLayout:
    return BookLayout(
        spreads=(
            StaticSpreadSpec(
                chapter="cover",
                label="Cover",
                pages=(PageSpec("left", text_id="cover-a"), PageSpec("right", text_id="cover-b")),
            ),
            StaticSpreadSpec(
                chapter="chapter-1",
                label="One",
                pages=(
                    PageSpec("left", text_id="page-1a", img_id="img-1a"),
                    PageSpec("right", text_id="page-1b", img_id="img-1b", img_position="bottom"),
                ),
            ),
            StaticSpreadSpec(
                chapter="end",
                label="End",
                pages=(PageSpec("left", text_id="end-a"), PageSpec("right", text_id="end-b")),
            ),
        )
    )


def _descriptor(
    descriptor_id: str,
    *,
    after_dynamic_id: str | None = None,
    after_static_spread: int | None = None,
) -> DynamicSpreadDescriptor:
    return DynamicSpreadDescriptor(
        id=descriptor_id,
        chapter="chapter-1",
        label="One cont.",
        left=PageFieldSet(text_id=f"{descriptor_id}-tl", img_id=f"{descriptor_id}-il"),
        right=PageFieldSet(text_id=f"{descriptor_id}-tr", img_id=f"{descriptor_id}-ir", img_position="bottom"),
        after_dynamic_id=after_dynamic_id,
        after_static_spread=after_static_spread,
    )


def _ids(ids: Iterable[str]) -> Callable[[], str]:
    iterator = iter(ids)
    return lambda: next(iterator)


def _build(
    *,
    template: SpreadTemplate | None = None,
    id_factory: Callable[[], str] = generate_dynamic_id,
    store: MemoryDocumentStore | None = None,
) -> tuple[LiveProjection, Navigator, StructuralReconciler]:
    layout = _layout()
    projection = LiveProjection.from_layout(layout)
    adapter = RemoteStoreAdapter(store, "book-1") if store is not None else None
    navigator = Navigator(projection, adapter)
    reconciler = StructuralReconciler(
        projection,
        template or layout.template,
        navigator,
        adapter,
        id_factory=id_factory,
    )
    return projection, navigator, reconciler


def _order(projection: LiveProjection) -> list[str]:
    return [node.dynamic_id or f"static-{node.static_tag}" for node in projection.nodes()]


def test_rebuild_chains_dynamic_anchors_in_order() -> None:
    projection, _, reconciler = _build()

    reconciler.rebuild(
        [
            _descriptor("d1", after_static_spread=0),
            _descriptor("d2", after_dynamic_id="d1"),
        ]
    )

    assert _order(projection) == ["static-0", "d1", "d2", "static-1", "static-2"]
    assert [node.spread_index for node in projection.nodes()] == [0, 1, 2, 3, 4]


def test_rebuild_appends_when_dynamic_anchor_is_missing() -> None:
    projection, _, reconciler = _build()

    reconciler.rebuild([_descriptor("orphan", after_dynamic_id="does-not-exist")])

    assert _order(projection) == ["static-0", "static-1", "static-2", "orphan"]
    assert projection.text_field("orphan-tl") is not None


def test_rebuild_appends_descriptor_whose_anchor_comes_later() -> None:
    projection, _, reconciler = _build()

    reconciler.rebuild(
        [
            _descriptor("d2", after_dynamic_id="d1"),
            _descriptor("d1", after_static_spread=0),
        ]
    )

    assert _order(projection) == ["static-0", "d1", "static-1", "static-2", "d2"]


def test_dynamic_anchor_takes_precedence_over_static_anchor() -> None:
    projection, _, reconciler = _build()

    reconciler.rebuild(
        [
            _descriptor("d1", after_static_spread=0),
            _descriptor("d2", after_dynamic_id="d1", after_static_spread=2),
        ]
    )

    assert _order(projection) == ["static-0", "d1", "d2", "static-1", "static-2"]


def test_static_anchor_used_when_dynamic_anchor_is_gone() -> None:
    projection, _, reconciler = _build()

    reconciler.rebuild([_descriptor("d2", after_dynamic_id="removed", after_static_spread=1)])

    assert _order(projection) == ["static-0", "static-1", "d2", "static-2"]


def test_later_insert_after_same_anchor_lands_closer_to_it() -> None:
    projection, _, reconciler = _build()

    reconciler.rebuild(
        [
            _descriptor("first", after_static_spread=1),
            _descriptor("second", after_static_spread=1),
        ]
    )

    assert _order(projection) == ["static-0", "static-1", "second", "first", "static-2"]


def test_rebuild_skips_duplicate_descriptor_ids() -> None:
    projection, _, reconciler = _build()

    reconciler.rebuild([_descriptor("d1", after_static_spread=0), _descriptor("d1", after_static_spread=1)])

    assert _order(projection).count("d1") == 1
    assert [item.id for item in reconciler.descriptors] == ["d1"]


def test_rebuild_skips_template_slots_that_do_not_exist() -> None:
    template = SpreadTemplate(right=frozenset({"text"}))
    projection, _, reconciler = _build(template=template)

    reconciler.rebuild([_descriptor("d1", after_static_spread=0), _descriptor("d2", after_dynamic_id="d1")])

    assert projection.image_field("d1-ir") is None
    assert projection.zone("d1-ir") is None
    assert projection.text_field("d1-tr") is not None
    assert projection.image_field("d1-il") is not None
    assert _order(projection) == ["static-0", "d1", "d2", "static-1", "static-2"]


def test_rebuild_then_serialize_round_trips_descriptors() -> None:
    projection, _, reconciler = _build()
    descriptors = [
        _descriptor("d1", after_static_spread=0),
        _descriptor("d2", after_dynamic_id="d1", after_static_spread=0),
        _descriptor("d3", after_static_spread=1),
    ]

    reconciler.rebuild(descriptors)
    serialized = reconciler.serialize()

    assert serialized == descriptors
    assert len(projection) == 6


def test_renumber_pages_skips_cover_and_end() -> None:
    projection, _, reconciler = _build()

    reconciler.renumber_pages()

    numbers = [[page.page_number for page in node.ordered_pages()] for node in projection.nodes()]
    assert numbers == [[None, None], [1, 2], [None, None]]


def test_renumber_pages_counts_dynamic_spreads_in_sequence() -> None:
    projection, _, reconciler = _build()

    reconciler.rebuild([_descriptor("d1", after_static_spread=1)])

    numbers = [[page.page_number for page in node.ordered_pages()] for node in projection.nodes()]
    assert numbers == [[None, None], [1, 2], [3, 4], [None, None]]


def test_insert_after_current_static_spread() -> None:
    store = MemoryDocumentStore()
    projection, navigator, reconciler = _build(id_factory=_ids(["dyn-a"]), store=store)

    node = reconciler.insert_after_current(projection.node_at(1))

    assert node.dynamic_id == "dyn-a"
    assert node.chapter == "chapter-1"
    assert node.label == "One cont."
    assert node.chapter_label == "One cont."
    assert node.spread_index == 2
    assert navigator.current == 2
    assert [page.page_number for page in node.ordered_pages()] == [3, 4]
    assert projection.text_field("dyn-a-tl") is not None
    assert projection.zone("dyn-a-ir").position == "bottom"

    stored = store.get("book-1")
    assert stored is not None
    assert stored["currentSpreadIndex"] == 2
    assert stored["mobilePageSide"] == "left"
    assert stored["dynamicSpreads"] == [
        {
            "id": "dyn-a",
            "chapter": "chapter-1",
            "label": "One cont.",
            "afterDynamicId": None,
            "afterStaticSpread": 1,
            "pages": {
                "left": {"textId": "dyn-a-tl", "imgId": "dyn-a-il", "imgPosition": "top", "imgHidden": False},
                "right": {"textId": "dyn-a-tr", "imgId": "dyn-a-ir", "imgPosition": "bottom", "imgHidden": False},
            },
        }
    ]


def test_insert_after_dynamic_spread_anchors_to_it_and_nearest_static() -> None:
    projection, _, reconciler = _build(id_factory=_ids(["dyn-a", "dyn-b"]))

    first = reconciler.insert_after_current(projection.node_at(1))
    second = reconciler.insert_after_current(first)

    assert second.label == "One cont. cont."
    descriptor = reconciler.descriptors[-1]
    assert descriptor.after_dynamic_id == "dyn-a"
    assert descriptor.after_static_spread == 1
    assert _order(projection) == ["static-0", "static-1", "dyn-a", "dyn-b", "static-2"]


def test_insert_after_current_regenerates_colliding_ids() -> None:
    projection, _, reconciler = _build(id_factory=_ids(["dyn-a", "dyn-a", "dyn-b"]))

    reconciler.insert_after_current(projection.node_at(1))
    second = reconciler.insert_after_current(projection.node_at(1))

    assert second.dynamic_id == "dyn-b"


def test_live_inserts_reload_in_the_same_order() -> None:
    projection, _, reconciler = _build(id_factory=_ids(["dyn-a", "dyn-b", "dyn-c"]))
    first = reconciler.insert_after_current(projection.node_at(1))
    reconciler.insert_after_current(projection.node_at(1))
    reconciler.insert_after_current(first)
    live_order = _order(projection)

    reloaded, _, fresh = _build()
    fresh.rebuild(reconciler.descriptors)

    assert _order(reloaded) == live_order


def test_remove_active_last_spread_falls_back_to_new_last_index() -> None:
    projection, navigator, reconciler = _build()
    reconciler.rebuild([_descriptor("tail", after_static_spread=2)])
    assert len(projection) == 4
    navigator.jump_to(3)

    reconciler.remove(projection.node_at(3))

    assert len(projection) == 3
    assert navigator.current == 2
    assert projection.text_field("tail-tl") is None


def test_remove_before_current_keeps_showing_the_same_spread() -> None:
    projection, navigator, reconciler = _build()
    reconciler.rebuild([_descriptor("d1", after_static_spread=0)])
    navigator.jump_to(3)

    reconciler.remove(projection.find_dynamic("d1"))

    assert navigator.current == 2
    assert projection.node_at(navigator.current).static_tag == 2


def test_remove_reanchors_dependents_and_persists() -> None:
    store = MemoryDocumentStore()
    projection, _, reconciler = _build(store=store)
    reconciler.rebuild(
        [
            _descriptor("d1", after_static_spread=0),
            _descriptor("d2", after_dynamic_id="d1"),
        ]
    )

    reconciler.remove(projection.find_dynamic("d1"))

    remaining = reconciler.descriptors
    assert [item.id for item in remaining] == ["d2"]
    assert remaining[0].after_dynamic_id is None
    assert remaining[0].after_static_spread == 0
    stored = store.get("book-1")
    assert stored is not None
    assert [item["id"] for item in stored["dynamicSpreads"]] == ["d2"]
    assert [node.spread_index for node in projection.nodes()] == [0, 1, 2, 3]


def test_remove_rejects_static_spreads() -> None:
    projection, _, reconciler = _build()

    with pytest.raises(ValueError, match="dynamic"):
        reconciler.remove(projection.node_at(1))


def test_remove_leaves_rebuilt_descriptors_untouched() -> None:
    projection, _, reconciler = _build()
    loaded = [
        _descriptor("d1", after_static_spread=0),
        _descriptor("d2", after_dynamic_id="d1"),
    ]
    reconciler.rebuild(loaded)

    reconciler.remove(projection.find_dynamic("d1"))

    assert loaded[1].after_dynamic_id == "d1"
    assert loaded[1].after_static_spread is None
    assert reconciler.descriptors[0].after_static_spread == 0
