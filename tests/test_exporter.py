"""Tests for export naming, writing and lookup."""

import re
from unittest.mock import patch

import pytest
from pptx import Presentation as load_pptx
from pptx.dml.color import RGBColor

from deckplate.errors import ExportError, NotFoundError
from deckplate.generator.exporter import (
    PPTX_CONTENT_TYPE,
    PresentationExporter,
    export_file_name,
    slugify_title,
)
from deckplate.schema.models import ExportTheme, Presentation, Slide, TemplateStyles


@pytest.fixture
def exporter(tmp_path):
    return PresentationExporter(tmp_path / "exports")


@pytest.fixture
def deck():
    return Presentation(title="Q3 Review: Sales & Ops!",
                        slides=[Slide(title="One", content=["a", "b"])])


class TestNaming:
    @pytest.mark.parametrize("title, expected", [
        ("Q3 Review: Sales & Ops!", "Q3_Review_Sales_Ops"),
        ("  spaced   out  ", "spaced_out"),
        ("under__score", "under_score"),
        ("", "presentation"),
        ("!!!", "presentation"),
        ("Café Überblick", "Café_Überblick"),
    ])
    def test_slugify(self, title, expected):
        assert slugify_title(title) == expected

    def test_slug_is_bounded(self):
        assert len(slugify_title("word " * 40)) <= 50

    def test_file_name(self):
        assert export_file_name("My Deck", 1718000000000) == "My_Deck_1718000000000.pptx"

    def test_file_name_uses_current_time(self):
        assert re.fullmatch(r"My_Deck_\d{13}\.pptx", export_file_name("My Deck"))


class TestExport:
    def test_writes_pptx(self, exporter, deck):
        result = exporter.export(deck)

        assert result.file_path.parent == exporter.output_dir
        assert result.file_name.startswith("Q3_Review_Sales_Ops_")
        assert result.file_path.is_file()
        assert result.size == result.file_path.stat().st_size > 0
        assert result.content_type == PPTX_CONTENT_TYPE
        assert result.to_dict()["file_name"] == result.file_name

        prs = load_pptx(str(result.file_path))
        assert len(prs.slides) == 2

    def test_template_styles_applied(self, exporter, deck):
        styles = TemplateStyles(color_scheme=["#123456", "#654321", "#ABCDEF"],
                                font_families=["Georgia"])
        result = exporter.export(deck, template_styles=styles)

        prs = load_pptx(str(result.file_path))
        run = prs.slides[1].shapes[0].text_frame.paragraphs[0].runs[0]
        assert run.font.color.rgb == RGBColor(0x12, 0x34, 0x56)
        assert run.font.name == "Georgia"

    def test_theme_wins_over_styles(self, exporter, deck):
        styles = TemplateStyles(color_scheme=["#123456", "#654321"])
        result = exporter.export(deck, theme=ExportTheme(title_color="#000001"),
                                 template_styles=styles)
        prs = load_pptx(str(result.file_path))
        run = prs.slides[1].shapes[0].text_frame.paragraphs[0].runs[0]
        assert run.font.color.rgb == RGBColor(0x00, 0x00, 0x01)

    def test_render_failure_leaves_no_file(self, exporter, deck):
        with pytest.raises(ExportError):
            exporter.export(deck, theme=ExportTheme(text_color="#zz"))
        assert exporter.list_exports() == []

    def test_write_failure_leaves_no_file(self, exporter, deck):
        with patch("deckplate.generator.exporter.os.link",
                   side_effect=OSError("disk full")):
            with pytest.raises(ExportError, match="disk full"):
                exporter.export(deck)
        assert list(exporter.output_dir.iterdir()) == []

    def test_write_bytes(self, exporter):
        result = exporter.write("Raw", b"PK\x03\x04data")
        assert result.file_path.read_bytes() == b"PK\x03\x04data"
        assert result.size == 8

    def test_same_millisecond_exports_do_not_overwrite(self, exporter):
        with patch("deckplate.generator.exporter.time.time", return_value=1718000000.0):
            first = exporter.write("Raw", b"first")
            second = exporter.write("Raw", b"second")

        assert first.file_name == "Raw_1718000000000.pptx"
        assert second.file_name == "Raw_1718000000001.pptx"
        assert first.file_path.read_bytes() == b"first"
        assert second.file_path.read_bytes() == b"second"
        assert exporter.list_exports() == [first.file_name, second.file_name]


class TestResolve:
    def test_resolve_existing(self, exporter, deck):
        result = exporter.export(deck)
        assert exporter.resolve(result.file_name) == result.file_path
        assert exporter.list_exports() == [result.file_name]

    @pytest.mark.parametrize("name", [
        "missing.pptx", "", "../secret.pptx", "sub/dir.pptx", ".tmp_x.pptx",
    ])
    def test_resolve_rejects(self, exporter, name):
        exporter.output_dir.mkdir(parents=True)
        with pytest.raises(NotFoundError):
            exporter.resolve(name)

    def test_list_without_directory(self, exporter):
        assert exporter.list_exports() == []
