"""Book identifiers carried in the hosting page URL."""

from __future__ import annotations

from dataclasses import dataclass
import secrets
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


DOCUMENT_ID_PARAM = "id"
DOCUMENT_ID_LENGTH = 7
_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True, slots=True)
class DocumentAddress:
    document_id: str
    redirect_url: str | None = None

    @property
    def needs_redirect(self) -> bool:
        return self.redirect_url is not None


def generate_document_id(length: int = DOCUMENT_ID_LENGTH) -> str:
    if length < 1:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def resolve_document_id(url: str) -> DocumentAddress:
    """Read the book id from ``url``; mint one and a redirect URL when it is missing."""

    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    for key, value in query:
        if key == DOCUMENT_ID_PARAM and value.strip():
            return DocumentAddress(document_id=value.strip())

    document_id = generate_document_id()
    kept = [(key, value) for key, value in query if key != DOCUMENT_ID_PARAM]
    kept.append((DOCUMENT_ID_PARAM, document_id))
    redirect_url = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(kept), parts.fragment))
    return DocumentAddress(document_id=document_id, redirect_url=redirect_url)
