"""Schema package - typed models shared by parser, binder, store and generator.

- models.py: dataclasses for parsed templates and exportable presentations
- loader.py: YAML/JSON reading and writing
"""

from .loader import (
    dump_template,
    load_data_map,
    load_presentation,
    save_presentation,
)
from .models import (
    ContentType,
    ExportTheme,
    ParsedTemplate,
    Position,
    Presentation,
    Slide,
    TemplateContent,
    TemplateMetadata,
    TemplateSlide,
    TemplateStyles,
    TemplateVariable,
    VariableType,
    derive_title,
)

__all__ = [
    # Models
    "ContentType",
    "ExportTheme",
    "ParsedTemplate",
    "Position",
    "Presentation",
    "Slide",
    "TemplateContent",
    "TemplateMetadata",
    "TemplateSlide",
    "TemplateStyles",
    "TemplateVariable",
    "VariableType",
    "derive_title",
    # Loader
    "dump_template",
    "load_data_map",
    "load_presentation",
    "save_presentation",
]
