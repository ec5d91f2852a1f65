from __future__ import annotations

import json
from pathlib import Path

import pytest

from folio.config import DEFAULT_DB_PATH, FolioSettings
from folio.layout import LayoutError


def test_settings_defaults_when_environment_is_empty() -> None:
    settings = FolioSettings.from_env({})

    assert settings.db_path == Path(DEFAULT_DB_PATH)
    assert settings.collection == "books"
    assert settings.layout_path is None
    assert settings.watch_debounce_seconds == pytest.approx(0.25)
    assert settings.text_min_rows == 3
    assert len(settings.load_layout().spreads) == 5


def test_settings_read_overrides() -> None:
    settings = FolioSettings.from_env(
        {
            "FOLIO_DB_PATH": "/srv/folio/books.db",
            "FOLIO_COLLECTION": "drafts",
            "FOLIO_WATCH_DEBOUNCE_SECONDS": "0.5",
            "FOLIO_TEXT_MIN_ROWS": "6",
        }
    )

    assert settings.db_path == Path("/srv/folio/books.db")
    assert settings.collection == "drafts"
    assert settings.watch_debounce_seconds == pytest.approx(0.5)
    assert settings.text_min_rows == 6


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("FOLIO_DB_PATH", "  "),
        ("FOLIO_COLLECTION", ""),
        ("FOLIO_WATCH_DEBOUNCE_SECONDS", "0"),
        ("FOLIO_TEXT_MIN_ROWS", "0"),
        ("FOLIO_TEXT_MIN_ROWS", "many"),
        ("FOLIO_WATCH_DEBOUNCE_SECONDS", "soon"),
    ],
)
def test_settings_reject_invalid_values(name: str, value: str) -> None:
    with pytest.raises(ValueError, match=name):
        FolioSettings.from_env({name: value})


def test_settings_load_layout_from_file(tmp_path: Path) -> None:
    layout_path = tmp_path / "layout.json"
    layout_path.write_text(
        json.dumps({"spreads": [{"chapter": "chapter-1", "label": "Solo", "pages": [{"side": "left", "text": "t"}]}]}),
        encoding="utf-8",
    )

    settings = FolioSettings.from_env({"FOLIO_LAYOUT_PATH": str(layout_path)})

    assert settings.load_layout().spreads[0].label == "Solo"


def test_settings_missing_layout_file_raises_layout_error(tmp_path: Path) -> None:
    settings = FolioSettings.from_env({"FOLIO_LAYOUT_PATH": str(tmp_path / "absent.json")})

    with pytest.raises(LayoutError, match="cannot read layout"):
        settings.load_layout()
