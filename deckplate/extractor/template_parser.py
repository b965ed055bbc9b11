"""Template parser - builds a ParsedTemplate from an uploaded .pptx package.

Pipeline for one upload::

    extract_archive()  ->  ppt/presentation.xml   (mandatory)
                       ->  ppt/slides/slideN.xml  (one TemplateSlide each)
                       ->  ppt/theme/theme1.xml   (colors, fonts; optional)
                       ->  ppt/slideMasters/*.xml (master ids; optional)
                       ->  variable catalog
                       ->  TemplateStore.save()

Slide parsing degrades gracefully: a slide part that cannot be read or
parsed becomes a fallback slide ("Slide N", no content) and the rest of the
deck is still ingested.  A missing or malformed presentation.xml, on the
other hand, means the upload is not a usable presentation and is fatal.

Slide order
-----------
With ``slide_order="relationships"`` (the default) the order declared in
presentation.xml's ``p:sldIdLst`` is resolved through
``ppt/_rels/presentation.xml.rels``; slide parts not reachable that way are
appended in natural filename order.  ``slide_order="filename"`` uses the
natural filename order alone; it disagrees with the declared order once
slides have been reordered in an editor.

Usage::

    from deckplate.extractor import TemplateParser
    from deckplate.store import TemplateStore

    parser = TemplateParser(TemplateStore("data/templates"))
    template = parser.parse("uploads/abc123", "Quarterly.pptx")
"""

import logging
import os
import re
import shutil
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping

from deckplate.errors import TemplateStructureError, XmlParseError
from deckplate.extractor.archive import extract_archive
from deckplate.extractor.variables import extract_variables
from deckplate.extractor.xml_parts import (
    SLIDE_RELTYPE,
    Element,
    attr_of,
    element_to_tree,
    find_all,
    find_first,
    int_attr,
    qn,
    read_part,
)
from deckplate.schema.models import (
    Position,
    ParsedTemplate,
    TemplateContent,
    TemplateMetadata,
    TemplateSlide,
    TemplateStyles,
    TemplateVariable,
    VariableType,
    derive_title,
)
from deckplate.store.template_store import TemplateStore

logger = logging.getLogger(__name__)

PRESENTATION_PART = Path("ppt", "presentation.xml")
PRESENTATION_RELS = Path("ppt", "_rels", "presentation.xml.rels")
SLIDES_DIR = Path("ppt", "slides")
THEME_PART = Path("ppt", "theme", "theme1.xml")
MASTERS_DIR = Path("ppt", "slideMasters")

SLIDE_ORDERS = ("relationships", "filename")

# Theme color slots, in the order they enter TemplateStyles.color_scheme
_COLOR_SLOTS = (
    "accent1", "accent2", "accent3", "accent4", "accent5", "accent6",
    "dk1", "lt1", "dk2", "lt2", "hlink", "folHlink",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _natural_key(name: str) -> list:
    """'slide10.xml' sorts after 'slide9.xml'."""
    return [int(tok) if tok.isdigit() else tok.lower()
            for tok in re.split(r"(\d+)", name)]


def _xml_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    files = [p for p in directory.iterdir()
             if p.is_file() and p.suffix.lower() == ".xml"]
    return sorted(files, key=lambda p: _natural_key(p.name))


def _display_name(original_file_name: str) -> str:
    name = Path(original_file_name).name
    if name.lower().endswith(".pptx"):
        name = name[:-5]
    return name


def new_template_id() -> str:
    """Timestamp plus random suffix; unique enough across concurrent parses."""
    return f"template_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


# ---------------------------------------------------------------------------
# presentation.xml and slide ordering
# ---------------------------------------------------------------------------

def read_slide_rel_ids(root: Path) -> list[str]:
    """Ordered relationship ids of the deck's slides.

    Raises TemplateStructureError if presentation.xml is missing and
    XmlParseError if it is malformed.
    """
    part = root / PRESENTATION_PART
    if not part.is_file():
        raise TemplateStructureError("presentation.xml not found in template")
    presentation = read_part(part)
    rel_ids = []
    for sld_id in find_all(presentation, "p:sldIdLst/p:sldId"):
        rel_id = attr_of(sld_id, "r:id")
        if rel_id:
            rel_ids.append(rel_id)
    return rel_ids


def _resolve_target(root: Path, target: str) -> Path:
    if target.startswith("/"):
        return root / target.lstrip("/")
    return Path(os.path.normpath(root / "ppt" / target))


def _slides_by_relationship(root: Path, rel_ids: list[str]) -> list[Path]:
    rels_part = root / PRESENTATION_RELS
    if not rel_ids or not rels_part.is_file():
        return []
    try:
        rels = read_part(rels_part)
    except XmlParseError as exc:
        logger.warning("Ignoring unreadable presentation relationships: %s", exc)
        return []

    targets = {}
    for rel in find_all(rels, "pr:Relationship"):
        if rel.get("Type") != SLIDE_RELTYPE or not rel.get("Target"):
            continue
        targets[rel.get("Id")] = _resolve_target(root, rel.get("Target"))

    ordered = []
    for rel_id in rel_ids:
        path = targets.get(rel_id)
        if path is None or not path.is_file():
            logger.warning("Slide relationship %s does not resolve to a part", rel_id)
            continue
        if path not in ordered:
            ordered.append(path)
    return ordered


def order_slide_parts(root: Path, rel_ids: list[str],
                      slide_order: str = "relationships") -> list[Path]:
    """Slide part paths in presentation order."""
    by_name = _xml_files(root / SLIDES_DIR)
    if slide_order == "filename":
        return by_name
    ordered = _slides_by_relationship(root, rel_ids)
    known = {p.resolve() for p in ordered}
    ordered.extend(p for p in by_name if p.resolve() not in known)
    return ordered


# ---------------------------------------------------------------------------
# Slides and shapes
# ---------------------------------------------------------------------------

def _shape_position(sp: Element) -> Position:
    xfrm = find_first(sp, "p:spPr/a:xfrm")
    if xfrm is None:
        return Position()
    default = Position()
    x = int_attr(xfrm, "x", "a:off")
    y = int_attr(xfrm, "y", "a:off")
    cx = int_attr(xfrm, "cx", "a:ext")
    cy = int_attr(xfrm, "cy", "a:ext")
    return Position(
        x=default.x if x is None else x,
        y=default.y if y is None else y,
        width=default.width if cx is None else cx,
        height=default.height if cy is None else cy,
    )


def parse_shape(sp: Element) -> TemplateContent | None:
    """Text content of one ``p:sp``, or None if it carries no text.

    Run texts of all paragraphs are concatenated without a separator.
    """
    tx_body = find_first(sp, "p:txBody")
    if tx_body is None:
        return None
    text = "".join(
        t.text or ""
        for para in find_all(tx_body, "a:p")
        for run in find_all(para, "a:r")
        for t in find_all(run, "a:t")
    )
    if not text.strip():
        return None
    return TemplateContent(
        content=text,
        variables=extract_variables(text),
        position=_shape_position(sp),
    )


def parse_slide(path: Path, slide_number: int) -> TemplateSlide:
    """Parse one slide part.  Raises XmlParseError on malformed markup."""
    tree = read_part(path)
    sp_tree = find_first(tree, "p:cSld/p:spTree")

    content: list[TemplateContent] = []
    variables: list[str] = []
    if sp_tree is not None:
        # iter() also reaches shapes nested in group shapes, in document order
        for sp in sp_tree.iter(qn("p:sp")):
            item = parse_shape(sp)
            if item is None:
                continue
            content.append(item)
            variables.extend(v for v in item.variables if v not in variables)

    return TemplateSlide(
        slide_number=slide_number,
        slide_id=path.stem,
        title=derive_title(content),
        content=content,
        variables=variables,
    )


def _parse_slide_or_fallback(path: Path, slide_number: int) -> TemplateSlide:
    try:
        return parse_slide(path, slide_number)
    except (XmlParseError, OSError, ValueError) as exc:
        logger.warning("Failed to parse slide %s, using fallback: %s", path.name, exc)
        return TemplateSlide.fallback(slide_number, path.stem)


# ---------------------------------------------------------------------------
# Theme and masters
# ---------------------------------------------------------------------------

def _color_hex(slot: Element | None) -> str | None:
    value = attr_of(slot, "val", "a:srgbClr") or attr_of(slot, "lastClr", "a:sysClr")
    if not value:
        return None
    return "#" + value.upper()


def parse_styles(root: Path) -> TemplateStyles:
    """Colors and fonts from theme1.xml, master ids from slideMasters/.

    Any absence or parse problem leaves the defaults in place.
    """
    styles = TemplateStyles()
    styles.master_layouts = [p.stem for p in _xml_files(root / MASTERS_DIR)]

    theme_path = root / THEME_PART
    if not theme_path.is_file():
        logger.info("No theme part in package, using default styles")
        return styles
    try:
        theme = read_part(theme_path)
    except (XmlParseError, OSError) as exc:
        logger.warning("Failed to parse theme, using default styles: %s", exc)
        return styles

    styles.theme = element_to_tree(theme)

    clr_scheme = find_first(theme, "a:themeElements/a:clrScheme")
    colors: list[str] = []
    for slot in _COLOR_SLOTS:
        color = _color_hex(find_first(clr_scheme, f"a:{slot}"))
        if color and color not in colors:
            colors.append(color)
    if colors:
        styles.color_scheme = colors

    font_scheme = find_first(theme, "a:themeElements/a:fontScheme")
    fonts: list[str] = []
    for path in ("a:majorFont/a:latin", "a:minorFont/a:latin"):
        typeface = attr_of(font_scheme, "typeface", path)
        if typeface and typeface not in fonts:
            fonts.append(typeface)
    if fonts:
        styles.font_families = fonts

    return styles


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------

def collect_variables(
    slides: list[TemplateSlide],
    variable_types: Mapping[str, str | VariableType] | None = None,
) -> list[TemplateVariable]:
    """Template-wide catalog, one entry per name in first-seen order."""
    variable_types = variable_types or {}
    catalog: dict[str, TemplateVariable] = {}
    for slide in slides:
        for name in slide.variables:
            if name in catalog:
                continue
            var_type = VariableType(variable_types.get(name, VariableType.TEXT))
            catalog[name] = TemplateVariable(name=name, type=var_type)
    return list(catalog.values())


# ---------------------------------------------------------------------------
# TemplateParser
# ---------------------------------------------------------------------------

class TemplateParser:
    """Turns uploaded packages into stored ParsedTemplates.

    Parameters
    ----------
    store : TemplateStore
        Receives every successfully parsed template and owns the per-template
        working directories the packages are extracted into.
    slide_order : str
        "relationships" or "filename", see the module docstring.
    id_factory : callable, optional
        Produces template ids; defaults to ``new_template_id``.
    """

    def __init__(self, store: TemplateStore, slide_order: str = "relationships",
                 id_factory: Callable[[], str] | None = None) -> None:
        if slide_order not in SLIDE_ORDERS:
            raise ValueError(f"Unknown slide order {slide_order!r}; "
                             f"use one of {', '.join(SLIDE_ORDERS)}")
        self.store = store
        self.slide_order = slide_order
        self.id_factory = id_factory or new_template_id

    def parse(self, path: str | Path, original_file_name: str | None = None,
              variable_types: Mapping[str, str | VariableType] | None = None,
              ) -> ParsedTemplate:
        """Extract, parse and persist one uploaded package."""
        path = Path(path)
        original_file_name = original_file_name or path.name
        template_id = self.id_factory()
        work_dir = self.store.working_dir(template_id)

        logger.info("Parsing template %s as %s", original_file_name, template_id)
        try:
            extract_archive(path, work_dir)
            template = self.build(work_dir, template_id, original_file_name,
                                  variable_types)
        except Exception:
            shutil.rmtree(work_dir, ignore_errors=True)
            raise

        self.store.save(template)
        logger.info("Parsed %s: %d slide(s), %d variable(s)%s",
                    template_id, len(template.slides), len(template.variables),
                    f" [{', '.join(template.variable_names())}]"
                    if template.variables else "")
        return template

    def build(self, root: str | Path, template_id: str, original_file_name: str,
              variable_types: Mapping[str, str | VariableType] | None = None,
              ) -> ParsedTemplate:
        """Build the document model from an already extracted package."""
        root = Path(root)
        rel_ids = read_slide_rel_ids(root)
        slide_paths = order_slide_parts(root, rel_ids, self.slide_order)
        if not slide_paths:
            logger.warning("Template %s has no slide parts", original_file_name)

        slides = [_parse_slide_or_fallback(p, number)
                  for number, p in enumerate(slide_paths, start=1)]
        variables = collect_variables(slides, variable_types)

        return ParsedTemplate(
            template_id=template_id,
            name=_display_name(original_file_name),
            description=f"Parsed template from {original_file_name}",
            slides=slides,
            variables=variables,
            styles=parse_styles(root),
            metadata=TemplateMetadata(
                original_file_name=original_file_name,
                parsed_at=datetime.now(timezone.utc).isoformat(),
                slide_count=len(slides),
                has_variables=bool(variables),
            ),
        )
