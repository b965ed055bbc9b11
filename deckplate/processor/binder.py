"""Data binder - substitutes a data map into a parsed template.

Binding never touches its input: every call builds a fresh ParsedTemplate
from the old one's fields plus the substituted text, so concurrent binds of
one stored template cannot interfere.

Placeholders without a value stay in the text verbatim; that is how
downstream consumers detect unresolved variables (see
``find_unresolved_variables``).

Usage::

    bound = apply_template_data(template, {"name": "Ana", "event": "Expo"})
    deck = convert_to_presentation(bound, "Expo 2026")
"""

import copy
import dataclasses
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from deckplate.extractor.variables import placeholder_pattern
from deckplate.schema.models import (
    ContentType,
    ParsedTemplate,
    Presentation,
    Slide,
    TemplateContent,
    TemplateSlide,
    derive_title,
)

logger = logging.getLogger(__name__)


def format_value(value: Any) -> str:
    """Render a bound value as slide text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(v) for v in value)
    return str(value)


def substitute(text: str, variables: list[str], data: Mapping[str, Any]) -> str:
    """Replace every placeholder of ``variables`` that has a value in ``data``.

    Keys are applied in the data map's insertion order.  None counts as no
    value.
    """
    for key, value in data.items():
        if key not in variables or value is None:
            continue
        replacement = format_value(value)
        text = placeholder_pattern(key).sub(lambda _m: replacement, text)
    return text


def _bind_content(content: TemplateContent, data: Mapping[str, Any]) -> TemplateContent:
    return dataclasses.replace(
        content,
        content=substitute(content.content, content.variables, data),
        variables=list(content.variables),
        position=dataclasses.replace(content.position),
        styles=copy.deepcopy(content.styles),
    )


def _bind_slide(slide: TemplateSlide, data: Mapping[str, Any]) -> TemplateSlide:
    content = [_bind_content(c, data) for c in slide.content]
    return dataclasses.replace(
        slide,
        content=content,
        title=derive_title(content) if content else slide.title,
        variables=list(slide.variables),
    )


def apply_template_data(template: ParsedTemplate,
                        data: Mapping[str, Any]) -> ParsedTemplate:
    """Return a new template with ``data`` substituted into every slide."""
    logger.info("Applying %d data key(s) to template %s",
                len(data), template.template_id)
    metadata = dataclasses.replace(
        template.metadata,
        processed_at=datetime.now(timezone.utc).isoformat(),
        data_applied=True,
        data_keys=list(data.keys()),
    )
    bound = dataclasses.replace(
        template,
        slides=[_bind_slide(s, data) for s in template.slides],
        variables=[dataclasses.replace(v) for v in template.variables],
        styles=copy.deepcopy(template.styles),
        metadata=metadata,
    )

    unresolved = find_unresolved_variables(bound)
    if unresolved:
        logger.info("Template %s has unresolved variables: %s",
                    template.template_id, ", ".join(unresolved))
    return bound


def find_unresolved_variables(template: ParsedTemplate) -> list[str]:
    """Catalog variables whose placeholders still occur in slide content."""
    unresolved = []
    for var in template.variables:
        pattern = placeholder_pattern(var.name)
        if any(pattern.search(c.content)
               for slide in template.slides for c in slide.content):
            unresolved.append(var.name)
    return unresolved


def convert_to_presentation(template: ParsedTemplate, title: str) -> Presentation:
    """Turn a (usually bound) template into a generic deck for export."""
    slides = []
    for index, slide in enumerate(template.slides, start=1):
        texts = [c.content.strip() for c in slide.content
                 if c.type == ContentType.TEXT and c.content.strip()]
        slides.append(Slide(
            title=slide.title or f"Slide {index}",
            content=texts,
            layout=slide.layout,
            speaker_notes=f"Generated from template: {template.name}",
        ))

    return Presentation(
        title=title,
        slides=slides,
        subtitle=f"Based on template: {template.name}",
        metadata={
            "template_id": template.template_id,
            "original_template": template.name,
            "converted_at": datetime.now(timezone.utc).isoformat(),
        },
    )
