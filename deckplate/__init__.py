"""deckplate - PPTX template ingestion, data binding and deck export."""

from deckplate.errors import (
    ArchiveError,
    DeckplateError,
    ExportError,
    NotFoundError,
    TemplateStructureError,
    VariableBindingError,
    XmlParseError,
)

__version__ = "0.1.0"

__all__ = [
    "ArchiveError",
    "DeckplateError",
    "ExportError",
    "NotFoundError",
    "TemplateStructureError",
    "VariableBindingError",
    "XmlParseError",
    "__version__",
]
