"""Store adapter, snapshot decoding and local edit tracking."""

from folio.sync.adapter import RemoteStoreAdapter
from folio.sync.codec import decode_document
from folio.sync.editing import EditLeases

__all__ = ["EditLeases", "RemoteStoreAdapter", "decode_document"]
