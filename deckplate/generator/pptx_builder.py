"""PPTX builder - serializes a generic Presentation into a .pptx package.

Produces one title slide followed by one slide per input slide.  Each
slide's content is normalized first (see ``deckplate.generator.content``)
and rendered as a plain text block, a bulleted/numbered list, or a table
grid.  Colors and the document font come from an ``ExportTheme``, usually
derived from a previously parsed template's styles.

Usage::

    from deckplate.generator.pptx_builder import PPTXBuilder
    from deckplate.schema import ExportTheme, Presentation, Slide

    deck = Presentation("Roadmap", [Slide("Goals", ["- ship", "  - docs"])])
    pptx_bytes = PPTXBuilder(ExportTheme(font_name="Calibri")).build(deck)
"""

import io
import logging

import pptx
from lxml import etree
from pptx.dml.color import RGBColor
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.oxml.ns import qn
from pptx.util import Emu, Inches, Pt

from deckplate.errors import ExportError
from deckplate.generator.content import (
    BulletList,
    ListItem,
    SlideBody,
    Table,
    TextBlock,
    normalize_content,
)
from deckplate.schema.models import ExportTheme, Presentation, Slide


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Geometry and typography
# ---------------------------------------------------------------------------

SLIDE_WIDTH = Inches(10)
SLIDE_HEIGHT = Inches(7.5)

_BLANK_LAYOUT = 6

_TITLE_SLIDE_BOX = (Inches(1), Inches(2.5), Inches(8), Inches(2))
_SUBTITLE_BOX = (Inches(1), Inches(4.5), Inches(8), Inches(1))
_SLIDE_TITLE_BOX = (Inches(0.5), Inches(1.0), Inches(9), Inches(0.8))
_BODY_BOX = (Inches(0.5), Inches(2.0), Inches(9), Inches(4))
_SECTION_BODY_BOX = (Inches(1), Inches(4.5), Inches(8), Inches(2))
_SLIDE_NUMBER_BOX = (Inches(9), Inches(6.5), Inches(0.5), Inches(0.3))

TABLE_ROW_HEIGHT = Inches(0.5)

_TITLE_SLIDE_PT = 32
_SUBTITLE_PT = 18
_SLIDE_TITLE_PT = 24
_BODY_PT = 16
_TABLE_PT = 14
_SLIDE_NUMBER_PT = 12

_HEADER_FILL = "#EEEEEE"
_ROW_FILL = "#FFFFFF"

# Left margin per list level and the hanging indent of the bullet glyph
_LEVEL_MARGIN = Emu(342900)
_BULLET_HANG = Emu(285750)
_BULLET_CHAR = "•"
_BULLET_TAGS = ("a:buNone", "a:buAutoNum", "a:buChar", "a:buBlip")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _hex_to_rgb(hex_color: str) -> RGBColor:
    """Convert '#RRGGBB' hex string to an RGBColor."""
    h = hex_color.lstrip("#")
    return RGBColor(*bytes.fromhex(h))


def _style_run(run, size_pt: float, color: str, font_name: str | None,
               bold: bool = False) -> None:
    font = run.font
    font.size = Pt(size_pt)
    font.bold = bold
    font.color.rgb = _hex_to_rgb(color)
    if font_name:
        font.name = font_name


def _add_textbox(slide, box, word_wrap: bool = True,
                 anchor: MSO_ANCHOR = MSO_ANCHOR.TOP):
    shape = slide.shapes.add_textbox(*box)
    frame = shape.text_frame
    frame.word_wrap = word_wrap
    frame.vertical_anchor = anchor
    return frame


def _set_bullet(paragraph, item: ListItem) -> None:
    """Write bullet / auto-number properties into the paragraph's a:pPr."""
    p_pr = paragraph._p.get_or_add_pPr()
    p_pr.set("marL", str(_LEVEL_MARGIN * (item.level + 1)))
    p_pr.set("indent", str(-_BULLET_HANG))
    for tag in _BULLET_TAGS:
        for old in p_pr.findall(qn(tag)):
            p_pr.remove(old)

    if item.numbered:
        bullet = p_pr.makeelement(qn("a:buAutoNum"), {"type": "arabicPeriod"})
        if item.number is not None and item.number != 1:
            bullet.set("startAt", str(item.number))
    else:
        bullet = p_pr.makeelement(qn("a:buChar"), {"char": _BULLET_CHAR})
    p_pr.append(bullet)


# ---------------------------------------------------------------------------
# PPTXBuilder
# ---------------------------------------------------------------------------

class PPTXBuilder:
    """Renders Presentations with one theme.

    Parameters
    ----------
    theme : ExportTheme, optional
        Title/body colors, background and document font.  Defaults to dark
        grey text on white with the template's default font.
    """

    def __init__(self, theme: ExportTheme | None = None) -> None:
        self.theme = theme or ExportTheme()

    @property
    def _body_color(self) -> str:
        return self.theme.bullet_color or self.theme.text_color

    def build(self, presentation: Presentation) -> bytes:
        """Render the deck and return the .pptx file content.

        Raises
        ------
        ExportError
            If python-pptx rejects any of the content (invalid colors,
            characters that cannot appear in XML, ...).
        """
        try:
            prs = pptx.Presentation()
            prs.slide_width = SLIDE_WIDTH
            prs.slide_height = SLIDE_HEIGHT
            self._set_properties(prs, presentation)

            self._add_title_slide(prs, presentation)
            for number, slide in enumerate(presentation.slides, start=1):
                self._add_content_slide(prs, slide, number)

            buf = io.BytesIO()
            prs.save(buf)
        except (ValueError, TypeError, KeyError, etree.LxmlError) as exc:
            raise ExportError(f"Failed to generate PPTX: {exc}") from exc

        logger.debug("Rendered %r: %d slide(s)", presentation.title,
                     len(presentation.slides) + 1)
        return buf.getvalue()

    # ------------------------------------------------------------------
    # Slides
    # ------------------------------------------------------------------

    def _set_properties(self, prs, presentation: Presentation) -> None:
        props = prs.core_properties
        props.title = presentation.title
        props.author = presentation.author
        props.subject = ""
        props.last_modified_by = presentation.author

    def _new_slide(self, prs):
        slide = prs.slides.add_slide(prs.slide_layouts[_BLANK_LAYOUT])
        if self.theme.primary_color:
            fill = slide.background.fill
            fill.solid()
            fill.fore_color.rgb = _hex_to_rgb(self.theme.primary_color)
        return slide

    def _add_centered_title(self, slide, text: str) -> None:
        frame = _add_textbox(slide, _TITLE_SLIDE_BOX, anchor=MSO_ANCHOR.MIDDLE)
        para = frame.paragraphs[0]
        para.alignment = PP_ALIGN.CENTER
        run = para.add_run()
        run.text = text
        _style_run(run, _TITLE_SLIDE_PT, self.theme.title_color,
                   self.theme.font_name, bold=True)

    def _add_title_slide(self, prs, presentation: Presentation) -> None:
        slide = self._new_slide(prs)
        self._add_centered_title(slide, presentation.title)

        if presentation.subtitle:
            frame = _add_textbox(slide, _SUBTITLE_BOX)
            para = frame.paragraphs[0]
            para.alignment = PP_ALIGN.CENTER
            run = para.add_run()
            run.text = presentation.subtitle
            _style_run(run, _SUBTITLE_PT, self.theme.text_color, self.theme.font_name)

    def _add_content_slide(self, prs, slide_def: Slide, number: int) -> None:
        """Title, body and slide number.  A "title" layout hint centers the title."""
        slide = self._new_slide(prs)
        title = slide_def.title or "Untitled Slide"
        body = normalize_content(slide_def.content)

        if slide_def.layout == "title":
            self._add_centered_title(slide, title)
            self._render_body(slide, body, _SECTION_BODY_BOX)
        else:
            frame = _add_textbox(slide, _SLIDE_TITLE_BOX)
            run = frame.paragraphs[0].add_run()
            run.text = title
            _style_run(run, _SLIDE_TITLE_PT, self.theme.title_color,
                       self.theme.font_name, bold=True)
            self._render_body(slide, body, _BODY_BOX)

        self._add_slide_number(slide, number)
        if slide_def.speaker_notes:
            slide.notes_slide.notes_text_frame.text = slide_def.speaker_notes

    def _add_slide_number(self, slide, number: int) -> None:
        frame = _add_textbox(slide, _SLIDE_NUMBER_BOX, word_wrap=False)
        para = frame.paragraphs[0]
        para.alignment = PP_ALIGN.CENTER
        run = para.add_run()
        run.text = str(number)
        _style_run(run, _SLIDE_NUMBER_PT, self.theme.text_color, self.theme.font_name)

    # ------------------------------------------------------------------
    # Body renderers - dispatch by normalized content type
    # ------------------------------------------------------------------

    def _render_body(self, slide, body: SlideBody, box) -> None:
        if isinstance(body, TextBlock):
            self._render_text(slide, body, box)
        elif isinstance(body, Table):
            self._render_table(slide, body, box)
        elif body.items:
            self._render_list(slide, body, box)

    def _render_text(self, slide, body: TextBlock, box) -> None:
        frame = _add_textbox(slide, box)
        run = frame.paragraphs[0].add_run()
        run.text = body.text
        _style_run(run, _BODY_PT, self.theme.text_color, self.theme.font_name)

    def _render_list(self, slide, body: BulletList, box) -> None:
        frame = _add_textbox(slide, box)
        for i, item in enumerate(body.items):
            para = frame.paragraphs[0] if i == 0 else frame.add_paragraph()
            para.level = item.level
            _set_bullet(para, item)
            run = para.add_run()
            run.text = item.text
            _style_run(run, _BODY_PT, self._body_color, self.theme.font_name)

    def _render_table(self, slide, body: Table, box) -> None:
        left, top, width, _height = box
        n_rows, n_cols = len(body.rows), body.column_count
        col_width = Emu(int(width / n_cols))

        shape = slide.shapes.add_table(n_rows, n_cols, left, top,
                                       Emu(col_width * n_cols),
                                       Emu(TABLE_ROW_HEIGHT * n_rows))
        table = shape.table
        for col in table.columns:
            col.width = col_width
        for row in table.rows:
            row.height = TABLE_ROW_HEIGHT

        header_fill = self.theme.primary_color or _HEADER_FILL
        for r, values in enumerate(body.rows):
            for c, value in enumerate(values):
                cell = table.cell(r, c)
                cell.fill.solid()
                cell.fill.fore_color.rgb = _hex_to_rgb(header_fill if r == 0 else _ROW_FILL)
                cell.vertical_anchor = MSO_ANCHOR.MIDDLE
                para = cell.text_frame.paragraphs[0]
                para.alignment = PP_ALIGN.LEFT
                run = para.add_run()
                run.text = value
                _style_run(run, _TABLE_PT, self.theme.text_color,
                           self.theme.font_name, bold=(r == 0))


def build_presentation(presentation: Presentation,
                       theme: ExportTheme | None = None) -> bytes:
    """Convenience function: render a Presentation to .pptx bytes."""
    return PPTXBuilder(theme).build(presentation)
