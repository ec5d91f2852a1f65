from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from folio.addressing import generate_document_id, resolve_document_id


def test_generated_ids_are_short_base36() -> None:
    document_id = generate_document_id()

    assert len(document_id) == 7
    assert set(document_id) <= set("0123456789abcdefghijklmnopqrstuvwxyz")
    with pytest.raises(ValueError):
        generate_document_id(0)


def test_existing_id_is_used_without_redirect() -> None:
    address = resolve_document_id("https://books.example/view?id=k3x9a0b&lang=es")

    assert address.document_id == "k3x9a0b"
    assert address.needs_redirect is False


def test_missing_id_mints_one_and_keeps_other_parameters() -> None:
    address = resolve_document_id("https://books.example/view?lang=es&id=#top")

    assert address.needs_redirect is True
    parts = urlsplit(address.redirect_url)
    assert parts.path == "/view"
    assert parts.fragment == "top"
    assert parse_qs(parts.query) == {"lang": ["es"], "id": [address.document_id]}
