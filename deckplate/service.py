"""Template service - the operations an outer layer (CLI, HTTP) calls.

Nothing here is a module-level singleton: build one service at process
start (``build_service``) and pass it to whatever handles requests.

Usage::

    from deckplate.config import get_settings
    from deckplate.service import build_service

    service = build_service(get_settings())
    template = service.upload("/tmp/upload-1", "Quarterly.pptx")
    result = service.export_template(template.template_id, {"quarter": "Q3"})
"""

import logging
from pathlib import Path
from typing import Any, Mapping

from deckplate.config import Settings
from deckplate.errors import NotFoundError
from deckplate.extractor.template_parser import TemplateParser
from deckplate.generator.exporter import ExportResult, PresentationExporter
from deckplate.processor.binder import apply_template_data, convert_to_presentation
from deckplate.schema.models import (
    ExportTheme,
    ParsedTemplate,
    Presentation,
    VariableType,
)
from deckplate.store.template_store import DEFAULT_MAX_AGE_MS, TemplateStore

logger = logging.getLogger(__name__)


class TemplateService:
    """Upload, inspect, bind and export templates.

    Parameters
    ----------
    store : TemplateStore
    parser : TemplateParser
        Must persist into ``store``.
    exporter : PresentationExporter
    """

    def __init__(self, store: TemplateStore, parser: TemplateParser,
                 exporter: PresentationExporter) -> None:
        self.store = store
        self.parser = parser
        self.exporter = exporter

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def upload(self, path: str | Path, original_file_name: str | None = None,
               variable_types: Mapping[str, str | VariableType] | None = None,
               ) -> ParsedTemplate:
        """Parse and store an uploaded package."""
        return self.parser.parse(path, original_file_name, variable_types)

    def get(self, template_id: str) -> ParsedTemplate:
        template = self.store.load(template_id)
        if template is None:
            raise NotFoundError(f"Template not found: {template_id}")
        return template

    def list(self) -> list[ParsedTemplate]:
        return self.store.list()

    def delete(self, template_id: str) -> None:
        if not self.store.delete(template_id):
            raise NotFoundError(f"Template not found: {template_id}")

    def cleanup(self, max_age_ms: int = DEFAULT_MAX_AGE_MS) -> int:
        return self.store.cleanup(max_age_ms)

    # ------------------------------------------------------------------
    # Binding and export
    # ------------------------------------------------------------------

    def bind(self, template_id: str, data: Mapping[str, Any]) -> ParsedTemplate:
        return apply_template_data(self.get(template_id), data)

    def render(self, template_id: str, data: Mapping[str, Any],
               title: str | None = None) -> Presentation:
        """Bind ``data`` and convert the result into a generic Presentation."""
        return self.render_with_template(template_id, data, title)[1]

    def render_with_template(self, template_id: str, data: Mapping[str, Any],
                             title: str | None = None
                             ) -> tuple[ParsedTemplate, Presentation]:
        """Like ``render``, also returning the stored template it was bound from."""
        template = self.get(template_id)
        bound = apply_template_data(template, data)
        return template, convert_to_presentation(bound, title or template.name)

    def export(self, presentation: Presentation,
               theme: ExportTheme | None = None,
               template_id: str | None = None) -> ExportResult:
        """Export a deck, optionally styled after a stored template."""
        styles = self.get(template_id).styles if template_id else None
        return self.exporter.export(presentation, theme=theme, template_styles=styles)

    def export_template(self, template_id: str, data: Mapping[str, Any],
                        title: str | None = None) -> ExportResult:
        """Bind, convert and export in the template's own colors and font."""
        template, presentation = self.render_with_template(template_id, data, title)
        return self.exporter.export(presentation, template_styles=template.styles)

    def resolve_export(self, file_name: str) -> Path:
        return self.exporter.resolve(file_name)


def build_service(settings: Settings) -> TemplateService:
    """Wire a TemplateService from settings."""
    store = TemplateStore(settings.template_root)
    parser = TemplateParser(store, slide_order=settings.slide_order)
    exporter = PresentationExporter(settings.export_root)
    logger.debug("Template root %s, export root %s",
                 settings.template_root, settings.export_root)
    return TemplateService(store, parser, exporter)
