"""Document models - the contract between parser, binder, store and exporter.

Two families live here:

- the ingestion side (``ParsedTemplate`` and its parts), produced once per
  uploaded package and persisted by the template store;
- the export side (``Presentation``, ``Slide``, ``ExportTheme``), a generic
  deck description that the serializer turns into a .pptx file.

Every model round-trips through ``to_dict()`` / ``from_dict()`` so records
can be stored as JSON and handed to an HTTP layer unchanged.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


DEFAULT_COLOR_SCHEME = ["#000000", "#FFFFFF"]
DEFAULT_FONT_FAMILIES = ["Arial", "Calibri"]
DEFAULT_TITLE_COLOR = "#333333"
DEFAULT_TEXT_COLOR = "#444444"

TITLE_MAX_CHARS = 50


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ContentType(Enum):
    """What a shape on a template slide carries."""
    TEXT = "text"
    IMAGE = "image"      # not produced by the parser yet
    SHAPE = "shape"      # not produced by the parser yet
    TABLE = "table"      # not produced by the parser yet
    CHART = "chart"      # not produced by the parser yet


class VariableType(Enum):
    """What kind of value a placeholder variable expects."""
    TEXT = "text"
    IMAGE = "image"
    CHART = "chart"
    TABLE = "table"


# ---------------------------------------------------------------------------
# Ingestion side
# ---------------------------------------------------------------------------

@dataclass
class Position:
    """Shape offset and extent.  EMU when read from the slide, else defaults."""
    x: int = 0
    y: int = 0
    width: int = 100
    height: int = 20

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y,
                "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "Position":
        return cls(x=d.get("x", 0), y=d.get("y", 0),
                   width=d.get("width", 100), height=d.get("height", 20))


@dataclass
class TemplateContent:
    """The text payload of one shape."""
    content: str
    type: ContentType = ContentType.TEXT
    variables: list[str] = field(default_factory=list)
    position: Position = field(default_factory=Position)
    styles: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "content": self.content,
            "variables": list(self.variables),
            "position": self.position.to_dict(),
            "styles": dict(self.styles),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TemplateContent":
        return cls(
            content=d.get("content", ""),
            type=ContentType(d.get("type", "text")),
            variables=list(d.get("variables", [])),
            position=Position.from_dict(d.get("position", {})),
            styles=dict(d.get("styles", {})),
        )


@dataclass
class TemplateSlide:
    """One slide of a parsed template."""
    slide_number: int           # 1-based, matches the position in slides
    slide_id: str               # source part stem, e.g. "slide3"
    title: str | None = None
    content: list[TemplateContent] = field(default_factory=list)
    layout: str = "content"
    variables: list[str] = field(default_factory=list)

    @classmethod
    def fallback(cls, slide_number: int, slide_id: str) -> "TemplateSlide":
        """Placeholder slide used when a slide part cannot be parsed."""
        return cls(slide_number=slide_number, slide_id=slide_id,
                   title=f"Slide {slide_number}")

    def to_dict(self) -> dict:
        return {
            "slide_number": self.slide_number,
            "slide_id": self.slide_id,
            "title": self.title,
            "content": [c.to_dict() for c in self.content],
            "layout": self.layout,
            "variables": list(self.variables),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TemplateSlide":
        return cls(
            slide_number=d["slide_number"],
            slide_id=d["slide_id"],
            title=d.get("title"),
            content=[TemplateContent.from_dict(c) for c in d.get("content", [])],
            layout=d.get("layout", "content"),
            variables=list(d.get("variables", [])),
        )


@dataclass
class TemplateVariable:
    """A named substitution point found in template text."""
    name: str
    type: VariableType = VariableType.TEXT
    required: bool = True
    default_value: str = ""

    @property
    def placeholder(self) -> str:
        """Canonical form, whichever syntax the source used."""
        return "{{" + self.name + "}}"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type.value,
            "placeholder": self.placeholder,
            "required": self.required,
            "default_value": self.default_value,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TemplateVariable":
        return cls(
            name=d["name"],
            type=VariableType(d.get("type", "text")),
            required=d.get("required", True),
            default_value=d.get("default_value", ""),
        )


@dataclass
class TemplateStyles:
    """Colors, fonts and masters lifted from the template's theme."""
    color_scheme: list[str] = field(default_factory=lambda: list(DEFAULT_COLOR_SCHEME))
    font_families: list[str] = field(default_factory=lambda: list(DEFAULT_FONT_FAMILIES))
    master_layouts: list[str] = field(default_factory=list)
    theme: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "color_scheme": list(self.color_scheme),
            "font_families": list(self.font_families),
            "master_layouts": list(self.master_layouts),
            "theme": self.theme,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TemplateStyles":
        return cls(
            color_scheme=list(d.get("color_scheme") or DEFAULT_COLOR_SCHEME),
            font_families=list(d.get("font_families") or DEFAULT_FONT_FAMILIES),
            master_layouts=list(d.get("master_layouts", [])),
            theme=d.get("theme") or {},
        )


@dataclass
class TemplateMetadata:
    """Provenance of a parsed template, extended when data is bound."""
    original_file_name: str
    parsed_at: str
    slide_count: int
    has_variables: bool
    processed_at: str | None = None
    data_applied: bool = False
    data_keys: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "original_file_name": self.original_file_name,
            "parsed_at": self.parsed_at,
            "slide_count": self.slide_count,
            "has_variables": self.has_variables,
        }
        if self.data_applied:
            d["processed_at"] = self.processed_at
            d["data_applied"] = True
            d["data_keys"] = list(self.data_keys)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "TemplateMetadata":
        return cls(
            original_file_name=d.get("original_file_name", ""),
            parsed_at=d.get("parsed_at", ""),
            slide_count=d.get("slide_count", 0),
            has_variables=d.get("has_variables", False),
            processed_at=d.get("processed_at"),
            data_applied=d.get("data_applied", False),
            data_keys=list(d.get("data_keys", [])),
        )


@dataclass
class ParsedTemplate:
    """Root artifact of ingesting one .pptx package."""
    template_id: str
    name: str
    slides: list[TemplateSlide]
    variables: list[TemplateVariable]
    styles: TemplateStyles
    metadata: TemplateMetadata
    description: str = ""

    def variable_names(self) -> list[str]:
        return [v.name for v in self.variables]

    def get_variable(self, name: str) -> TemplateVariable | None:
        for var in self.variables:
            if var.name == name:
                return var
        return None

    def to_dict(self) -> dict:
        return {
            "template_id": self.template_id,
            "name": self.name,
            "description": self.description,
            "slides": [s.to_dict() for s in self.slides],
            "variables": [v.to_dict() for v in self.variables],
            "styles": self.styles.to_dict(),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ParsedTemplate":
        return cls(
            template_id=d["template_id"],
            name=d.get("name", ""),
            description=d.get("description", ""),
            slides=[TemplateSlide.from_dict(s) for s in d.get("slides", [])],
            variables=[TemplateVariable.from_dict(v) for v in d.get("variables", [])],
            styles=TemplateStyles.from_dict(d.get("styles", {})),
            metadata=TemplateMetadata.from_dict(d.get("metadata", {})),
        )


def derive_title(content: list[TemplateContent]) -> str | None:
    """First non-empty text content, truncated for display."""
    for item in content:
        if item.type != ContentType.TEXT:
            continue
        text = item.content.strip()
        if text:
            if len(text) > TITLE_MAX_CHARS:
                return text[:TITLE_MAX_CHARS] + "..."
            return text
    return None


# ---------------------------------------------------------------------------
# Export side
# ---------------------------------------------------------------------------

@dataclass
class Slide:
    """One slide of a generic deck.

    ``content`` is deliberately loose: a string, a list of strings and/or
    dicts (dicts may nest through ``children``), a table dict with
    ``headers`` and ``rows``, or None.  The generator normalizes it before
    rendering.
    """
    title: str
    content: Any = None
    layout: str = "content"
    speaker_notes: str | None = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"title": self.title, "content": self.content,
                             "layout": self.layout}
        if self.speaker_notes:
            d["speaker_notes"] = self.speaker_notes
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Slide":
        return cls(
            title=d.get("title", ""),
            content=d.get("content"),
            layout=d.get("layout", "content"),
            speaker_notes=d.get("speaker_notes"),
        )


@dataclass
class Presentation:
    """A title plus an ordered list of slides."""
    title: str
    slides: list[Slide] = field(default_factory=list)
    subtitle: str | None = None
    author: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "title": self.title,
            "slides": [s.to_dict() for s in self.slides],
        }
        if self.subtitle:
            d["subtitle"] = self.subtitle
        if self.author:
            d["author"] = self.author
        if self.metadata:
            d["metadata"] = self.metadata
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Presentation":
        return cls(
            title=d.get("title", ""),
            slides=[Slide.from_dict(s) for s in d.get("slides", [])],
            subtitle=d.get("subtitle"),
            author=d.get("author", ""),
            metadata=dict(d.get("metadata", {})),
        )


@dataclass
class ExportTheme:
    """Colors and font applied to an exported deck.  Colors are '#RRGGBB'."""
    title_color: str = DEFAULT_TITLE_COLOR
    text_color: str = DEFAULT_TEXT_COLOR
    bullet_color: str | None = None
    primary_color: str | None = None    # slide background, table header fill
    accent_colors: list[str] = field(default_factory=list)
    font_name: str | None = None

    @classmethod
    def from_styles(cls, styles: TemplateStyles) -> "ExportTheme":
        """Derive a theme from a parsed template's styles."""
        scheme = styles.color_scheme
        return cls(
            title_color=scheme[0] if scheme else DEFAULT_TITLE_COLOR,
            text_color=scheme[1] if len(scheme) > 1 else DEFAULT_TEXT_COLOR,
            accent_colors=list(scheme[2:]),
            font_name=styles.font_families[0] if styles.font_families else None,
        )

    def to_dict(self) -> dict:
        return {
            "title_color": self.title_color,
            "text_color": self.text_color,
            "bullet_color": self.bullet_color,
            "primary_color": self.primary_color,
            "accent_colors": list(self.accent_colors),
            "font_name": self.font_name,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ExportTheme":
        return cls(
            title_color=d.get("title_color") or DEFAULT_TITLE_COLOR,
            text_color=d.get("text_color") or DEFAULT_TEXT_COLOR,
            bullet_color=d.get("bullet_color"),
            primary_color=d.get("primary_color"),
            accent_colors=list(d.get("accent_colors", [])),
            font_name=d.get("font_name"),
        )
