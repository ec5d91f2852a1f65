from __future__ import annotations

import json
from pathlib import Path

import pytest

from folio.cli.add_page import main as add_page_main
from folio.cli.show_book import main as show_book_main
from folio.cli.watch_book import main as watch_book_main
from folio.store.sqlite_store import SqliteDocumentStore


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "FOLIO_DB_PATH",
        "FOLIO_COLLECTION",
        "FOLIO_LAYOUT_PATH",
        "FOLIO_WATCH_DEBOUNCE_SECONDS",
        "FOLIO_TEXT_MIN_ROWS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_show_book_prints_reconstructed_structure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db_path = tmp_path / "books.db"
    with SqliteDocumentStore(db_path) as store:
        store.put("k3x9a0b", {"currentSpread": 1, "texts.page-1a": "Había una vez"})

    exit_code = show_book_main(["--book-id", "k3x9a0b", "--db-path", str(db_path), "--state"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["book_id"] == "k3x9a0b"
    assert payload["current"] == 1
    assert payload["label"] == "Capítulo 1"
    assert len(payload["spreads"]) == 5
    assert payload["spreads"][1]["pages"][0]["page_number"] == 1
    assert payload["state"]["texts"] == {"page-1a": "Había una vez"}


def test_add_page_inserts_after_requested_spread(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db_path = tmp_path / "books.db"

    exit_code = add_page_main(["--book-id", "k3x9a0b", "--db-path", str(db_path), "--after", "3"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["index"] == 4
    assert payload["label"] == "Capítulo 3 cont."
    assert payload["total_spreads"] == 6

    with SqliteDocumentStore(db_path) as store:
        document = store.get("k3x9a0b")
    assert document["currentSpreadIndex"] == 4
    assert [item["id"] for item in document["dynamicSpreads"]] == [payload["dynamic_id"]]

    show_book_main(["--book-id", "k3x9a0b", "--db-path", str(db_path)])
    structure = json.loads(capsys.readouterr().out)
    assert structure["spreads"][4]["dynamic_id"] == payload["dynamic_id"]
    assert structure["spreads"][4]["pages"][0]["text_id"] == f"{payload['dynamic_id']}-tl"


def test_add_page_rejects_out_of_range_position(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = add_page_main(["--book-id", "k3x9a0b", "--db-path", str(tmp_path / "books.db"), "--after", "9"])

    assert exit_code == 2
    assert "--after must be between 0 and 4" in capsys.readouterr().err


def test_cli_reports_unreadable_layout(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    layout_path = tmp_path / "layout.json"
    layout_path.write_text("[]", encoding="utf-8")

    exit_code = show_book_main(
        ["--book-id", "k3x9a0b", "--db-path", str(tmp_path / "books.db"), "--layout", str(layout_path)]
    )

    assert exit_code == 2
    assert "layout must be a JSON object" in capsys.readouterr().err


@pytest.mark.parametrize("entrypoint", [show_book_main, add_page_main, watch_book_main])
def test_cli_reports_invalid_settings(
    entrypoint,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("FOLIO_TEXT_MIN_ROWS", "zero")

    exit_code = entrypoint(["--book-id", "k3x9a0b", "--db-path", str(tmp_path / "books.db")])

    assert exit_code == 2
    assert not (tmp_path / "books.db").exists()
