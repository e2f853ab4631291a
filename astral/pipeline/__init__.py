"""
Generation cycles for ASTRAL: live document store, illustrator, and orchestrator.
"""

from .illustrator import IMAGE_ERROR_MARKER, Illustrator
from .orchestrator import AstralOrchestrator
from .store import DocumentListener, DocumentStore, StoreSnapshot

__all__ = [
    "AstralOrchestrator",
    "DocumentListener",
    "DocumentStore",
    "IMAGE_ERROR_MARKER",
    "Illustrator",
    "StoreSnapshot",
]
