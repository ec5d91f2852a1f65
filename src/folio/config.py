"""Runtime configuration for book sessions and CLIs."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping

from folio.layout import BookLayout, default_layout, load_layout


DEFAULT_DB_PATH = ".folio-books.db"
DEFAULT_COLLECTION = "books"
DEFAULT_WATCH_DEBOUNCE_SECONDS = 0.25
DEFAULT_TEXT_MIN_ROWS = 3


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_positive_float(*, name: str, raw_value: str, minimum: float = 0.001) -> float:
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw_value!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class FolioSettings:
    """Validated settings shared by the CLIs."""

    db_path: Path
    collection: str = DEFAULT_COLLECTION
    layout_path: Path | None = None
    watch_debounce_seconds: float = DEFAULT_WATCH_DEBOUNCE_SECONDS
    text_min_rows: int = DEFAULT_TEXT_MIN_ROWS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "FolioSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        db_path_raw = source.get("FOLIO_DB_PATH", DEFAULT_DB_PATH).strip()
        if not db_path_raw:
            raise ValueError("FOLIO_DB_PATH cannot be empty")

        collection = source.get("FOLIO_COLLECTION", DEFAULT_COLLECTION).strip()
        if not collection:
            raise ValueError("FOLIO_COLLECTION cannot be empty")

        layout_raw = source.get("FOLIO_LAYOUT_PATH", "").strip()

        debounce_raw = source.get("FOLIO_WATCH_DEBOUNCE_SECONDS", str(DEFAULT_WATCH_DEBOUNCE_SECONDS)).strip()
        min_rows_raw = source.get("FOLIO_TEXT_MIN_ROWS", str(DEFAULT_TEXT_MIN_ROWS)).strip()
        if not debounce_raw:
            raise ValueError("FOLIO_WATCH_DEBOUNCE_SECONDS cannot be empty")
        if not min_rows_raw:
            raise ValueError("FOLIO_TEXT_MIN_ROWS cannot be empty")

        watch_debounce_seconds = _parse_positive_float(
            name="FOLIO_WATCH_DEBOUNCE_SECONDS",
            raw_value=debounce_raw,
            minimum=0.01,
        )
        text_min_rows = _parse_positive_int(
            name="FOLIO_TEXT_MIN_ROWS",
            raw_value=min_rows_raw,
            minimum=1,
        )

        return cls(
            db_path=Path(db_path_raw),
            collection=collection,
            layout_path=Path(layout_raw) if layout_raw else None,
            watch_debounce_seconds=watch_debounce_seconds,
            text_min_rows=text_min_rows,
        )

    def load_layout(self) -> BookLayout:
        if self.layout_path is None:
            return default_layout()
        return load_layout(self.layout_path)
