"""Template ingestion - from an uploaded .pptx package to a ParsedTemplate.

Modules:
    archive: zip package extraction
    xml_parts: lxml parsing and optional-path lookups
    variables: {{name}} / ${name} placeholder extraction
    template_parser: document model builder
"""

from .archive import extract_archive
from .template_parser import TemplateParser, new_template_id, parse_styles
from .variables import canonical_placeholder, extract_variables
from .xml_parts import parse_xml, read_part

__all__ = [
    "TemplateParser",
    "canonical_placeholder",
    "extract_archive",
    "extract_variables",
    "new_template_id",
    "parse_styles",
    "parse_xml",
    "read_part",
]
