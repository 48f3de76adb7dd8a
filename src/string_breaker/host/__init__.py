"""Host editor contracts and the in-memory host."""

from .base import (
    EDIT_SURFACE_KIND,
    DocumentAccessor,
    EditorHost,
    SelectionProvider,
    SurfaceManager,
)
from .memory import MemoryDocument, MemoryWorkspace

__all__ = [
    "DocumentAccessor",
    "EDIT_SURFACE_KIND",
    "EditorHost",
    "MemoryDocument",
    "MemoryWorkspace",
    "SelectionProvider",
    "SurfaceManager",
]
