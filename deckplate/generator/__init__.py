"""Presentation generator package - PPTX serialization and export.

Modules:
    content: normalization of loose slide content into text/list/table
    pptx_builder: Presentation -> .pptx bytes
    exporter: naming, atomic writing and lookup of exported decks
"""

from .content import BulletList, ListItem, Table, TextBlock, normalize_content
from .exporter import (
    PPTX_CONTENT_TYPE,
    ExportResult,
    PresentationExporter,
    export_file_name,
    slugify_title,
)
from .pptx_builder import PPTXBuilder, build_presentation

__all__ = [
    "BulletList",
    "ExportResult",
    "ListItem",
    "PPTXBuilder",
    "PPTX_CONTENT_TYPE",
    "PresentationExporter",
    "Table",
    "TextBlock",
    "build_presentation",
    "export_file_name",
    "normalize_content",
    "slugify_title",
]
