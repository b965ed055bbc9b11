"""QA validator - reads an exported deck back and checks it against its source.

Checks that the rendered .pptx has the title slide plus one slide per source
slide, the expected canvas size, every slide title, table grids matching the
normalized content, and no leftover ``{{name}}`` / ``${name}`` placeholders.

Usage::

    from deckplate.qa.validator import DeckValidator

    result = DeckValidator(presentation).validate(pptx_bytes)
    assert result.passed, result.summary()
"""

import io
from dataclasses import dataclass, field

import pptx

from deckplate.extractor.variables import extract_variables
from deckplate.generator.content import Table, normalize_content
from deckplate.generator.pptx_builder import SLIDE_HEIGHT, SLIDE_WIDTH
from deckplate.schema.models import Presentation, Slide


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class Issue:
    """A single QA issue found during validation."""
    severity: str       # "error" or "warning"
    slide_index: int    # -1 for presentation-level issues, 0 = title slide
    slide_title: str
    category: str       # e.g. "slide_count", "title", "table", "placeholder"
    message: str

    def __str__(self) -> str:
        loc = f"slide {self.slide_index}" if self.slide_index >= 0 else "deck"
        if self.slide_title:
            loc += f" ({self.slide_title})"
        return f"[{self.severity.upper()}] {loc}: {self.message}"


@dataclass
class QAResult:
    """Aggregated result of QA validation."""
    issues: list[Issue] = field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        """One-line summary string."""
        status = "PASS" if self.passed else "FAIL"
        return (f"QA {status}: {len(self.errors)} error(s), "
                f"{len(self.warnings)} warning(s)")

    def report(self) -> str:
        """Multi-line report of all issues."""
        lines = [self.summary()]
        lines.extend(f"  {issue}" for issue in self.issues)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _all_text_on_slide(slide) -> str:
    """Concatenate all text on a slide, table cells included."""
    parts: list[str] = []
    for shape in slide.shapes:
        if shape.has_text_frame:
            parts.append(shape.text_frame.text)
        elif shape.has_table:
            for row in shape.table.rows:
                parts.extend(cell.text for cell in row.cells)
    return "\n".join(parts)


def _table_shapes(slide) -> list:
    return [s for s in slide.shapes if s.has_table]


# ---------------------------------------------------------------------------
# DeckValidator
# ---------------------------------------------------------------------------

class DeckValidator:
    """Validates an exported deck against the Presentation it was built from."""

    def __init__(self, presentation: Presentation) -> None:
        self.presentation = presentation

    def validate(self, pptx_bytes: bytes) -> QAResult:
        prs = pptx.Presentation(io.BytesIO(pptx_bytes))
        result = QAResult()

        self._check_slide_count(prs, result)
        self._check_dimensions(prs, result)

        if len(prs.slides) == len(self.presentation.slides) + 1:
            self._check_title_slide(prs.slides[0], result)
            for index, slide_def in enumerate(self.presentation.slides, start=1):
                self._check_slide(prs.slides[index], index, slide_def, result)

        return result

    # ------------------------------------------------------------------
    # Presentation-level checks
    # ------------------------------------------------------------------

    def _check_slide_count(self, prs, result: QAResult) -> None:
        expected = len(self.presentation.slides) + 1
        actual = len(prs.slides)
        if actual != expected:
            result.issues.append(Issue(
                severity="error", slide_index=-1, slide_title="",
                category="slide_count",
                message=f"Expected {expected} slides (title + content), got {actual}",
            ))

    def _check_dimensions(self, prs, result: QAResult) -> None:
        if prs.slide_width != SLIDE_WIDTH or prs.slide_height != SLIDE_HEIGHT:
            result.issues.append(Issue(
                severity="error", slide_index=-1, slide_title="",
                category="dimensions",
                message=(f"Canvas {prs.slide_width}x{prs.slide_height} != "
                         f"expected {SLIDE_WIDTH}x{SLIDE_HEIGHT}"),
            ))

    # ------------------------------------------------------------------
    # Slide-level checks
    # ------------------------------------------------------------------

    def _check_title_slide(self, slide, result: QAResult) -> None:
        text = _all_text_on_slide(slide)
        if self.presentation.title and self.presentation.title not in text:
            result.issues.append(Issue(
                severity="error", slide_index=0, slide_title=self.presentation.title,
                category="title", message="Presentation title missing from title slide",
            ))
        self._check_placeholders(text, 0, self.presentation.title, result)

    def _check_slide(self, slide, index: int, slide_def: Slide,
                     result: QAResult) -> None:
        text = _all_text_on_slide(slide)
        title = slide_def.title or "Untitled Slide"
        if title not in text:
            result.issues.append(Issue(
                severity="error", slide_index=index, slide_title=title,
                category="title", message="Slide title not rendered",
            ))

        body = normalize_content(slide_def.content)
        if isinstance(body, Table):
            self._check_table(slide, index, title, body, result)

        self._check_placeholders(text, index, title, result)

    def _check_table(self, slide, index: int, title: str, body: Table,
                     result: QAResult) -> None:
        tables = _table_shapes(slide)
        if not tables:
            result.issues.append(Issue(
                severity="error", slide_index=index, slide_title=title,
                category="table", message="Table content rendered without a table",
            ))
            return
        table = tables[0].table
        shape = (len(table.rows), len(table.columns))
        expected = (len(body.rows), body.column_count)
        if shape != expected:
            result.issues.append(Issue(
                severity="error", slide_index=index, slide_title=title,
                category="table",
                message=f"Table is {shape[0]}x{shape[1]}, expected {expected[0]}x{expected[1]}",
            ))

    def _check_placeholders(self, text: str, index: int, title: str,
                            result: QAResult) -> None:
        leftover = extract_variables(text)
        if leftover:
            result.issues.append(Issue(
                severity="warning", slide_index=index, slide_title=title,
                category="placeholder",
                message=f"Unresolved placeholder(s): {', '.join(leftover)}",
            ))


def validate_presentation(presentation: Presentation, pptx_bytes: bytes) -> QAResult:
    """Convenience function: validate a deck built from ``presentation``."""
    return DeckValidator(presentation).validate(pptx_bytes)
