"""Live projection of a book and the components that maintain it."""

from folio.book.navigation import Navigator
from folio.book.projection import LiveProjection, PageSlot, SpreadNode
from folio.book.projector import ContentProjector, ProjectionScope
from folio.book.reconciler import StructuralReconciler
from folio.book.session import BookSession

__all__ = [
    "BookSession",
    "ContentProjector",
    "LiveProjection",
    "Navigator",
    "PageSlot",
    "ProjectionScope",
    "SpreadNode",
    "StructuralReconciler",
]
