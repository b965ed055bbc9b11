"""Tests for the CLI entry point (deckplate.cli).

Covers argument parsing, every subcommand against a real data directory,
QA gating of exports, and error reporting.
"""

import json
from unittest.mock import patch

import pytest
import yaml

from deckplate.cli import build_parser, main
from deckplate.qa.validator import Issue, QAResult


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def parser():
    return build_parser()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def run(data_dir, capsys):
    """Run the CLI against data_dir; return (stdout, stderr)."""
    def _run(*argv):
        main(["--data-dir", str(data_dir), *argv])
        captured = capsys.readouterr()
        return captured.out, captured.err
    return _run


@pytest.fixture
def template_id(run, greeting_pptx):
    out, _err = run("parse", str(greeting_pptx))
    return out.strip()


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "data.yaml"
    path.write_text("name: Ana\nevent: Expo\nauthor: Ops\n", encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

class TestBuildParser:
    def test_subcommands(self, parser):
        args = parser.parse_args(["render", "t1", "--data", "d.yaml", "-o", "out.yaml"])
        assert args.command == "render"
        assert args.template_id == "t1"
        assert args.data == "d.yaml"
        assert args.output == "out.yaml"

    def test_export_flags(self, parser):
        args = parser.parse_args(["export", "deck.yaml", "--template-id", "t1",
                                  "--skip-qa", "--force"])
        assert args.presentation == "deck.yaml"
        assert args.template_id == "t1"
        assert args.skip_qa and args.force

    def test_type_hints_repeat(self, parser):
        args = parser.parse_args(["parse", "x.pptx", "--type", "a=image",
                                  "--type", "b=table"])
        assert args.type == ["a=image", "b=table"]

    def test_global_options(self, parser):
        args = parser.parse_args(["-v", "--slide-order", "filename", "list"])
        assert args.verbose
        assert args.slide_order == "filename"

    def test_command_required(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args([])

    def test_cleanup_default_from_settings(self, parser):
        assert parser.parse_args(["cleanup"]).max_age_hours is None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class TestParseListShow:
    def test_parse_prints_id(self, template_id, data_dir):
        assert template_id.startswith("template_")
        assert (data_dir / "templates" / f"{template_id}.json").is_file()

    def test_parse_reports_variables(self, run, greeting_pptx):
        _out, err = run("parse", str(greeting_pptx), "--type", "author=image")
        assert "Variables: 3 (author, name, event)" in err

    def test_parse_bad_type_hint(self, run, greeting_pptx):
        with pytest.raises(SystemExit) as exc_info:
            run("parse", str(greeting_pptx), "--type", "author")
        assert exc_info.value.code == 1

    def test_list(self, run, template_id):
        out, _err = run("list")
        assert template_id in out
        assert "Greeting" in out

    def test_list_empty(self, run):
        _out, err = run("list")
        assert "No templates stored" in err

    def test_show(self, run, template_id):
        out, _err = run("show", template_id)
        assert "Name:        Greeting" in out
        assert "{{event}}" in out
        assert "#4472C4" in out

    def test_show_yaml(self, run, template_id):
        out, _err = run("show", template_id, "--yaml")
        data = yaml.safe_load(out)
        assert data["template_id"] == template_id
        assert "theme" not in data["styles"]

    def test_show_missing(self, run, capsys):
        with pytest.raises(SystemExit):
            run("show", "template_0_missing")
        assert "Template not found" in capsys.readouterr().err


class TestRender:
    def test_render_to_stdout(self, run, template_id, data_file):
        out, _err = run("render", template_id, "--data", str(data_file))
        deck = yaml.safe_load(out)
        assert deck["title"] == "Greeting"
        assert deck["slides"][1]["content"][0] == "Hello Ana, welcome to Expo"

    def test_render_to_file(self, run, template_id, data_file, tmp_path):
        target = tmp_path / "deck.json"
        run("render", template_id, "--data", str(data_file), "--title", "Expo",
            "-o", str(target))
        deck = json.loads(target.read_text(encoding="utf-8"))
        assert deck["title"] == "Expo"

    def test_render_warns_unresolved(self, run, template_id, tmp_path):
        partial = tmp_path / "partial.yaml"
        partial.write_text("name: Ana\n", encoding="utf-8")
        _out, err = run("render", template_id, "--data", str(partial))
        assert "Unresolved variables: author, event" in err


class TestExport:
    def test_export_template(self, run, template_id, data_file, data_dir):
        out, err = run("export-template", template_id, "--data", str(data_file),
                       "--title", "Expo Deck")
        file_name = out.strip()
        assert file_name.startswith("Expo_Deck_")
        assert (data_dir / "exports" / file_name).is_file()
        assert "QA PASS" in err

    def test_export_presentation_file(self, run, tmp_path, data_dir):
        deck_file = tmp_path / "deck.yaml"
        deck_file.write_text(yaml.dump({
            "title": "Roadmap",
            "slides": [{"title": "Goals", "content": ["- ship", "  - docs"]}],
        }), encoding="utf-8")

        out, _err = run("export", str(deck_file), "--skip-qa")
        assert (data_dir / "exports" / out.strip()).is_file()

    def test_export_blocked_by_qa(self, run, tmp_path, data_dir):
        deck_file = tmp_path / "deck.yaml"
        deck_file.write_text("title: Roadmap\nslides: []\n", encoding="utf-8")
        failing = QAResult(issues=[Issue("error", -1, "", "slide_count", "boom")])

        with patch("deckplate.cli.DeckValidator") as validator:
            validator.return_value.validate.return_value = failing
            with pytest.raises(SystemExit):
                run("export", str(deck_file))
        assert not (data_dir / "exports").exists() or \
            list((data_dir / "exports").iterdir()) == []

    def test_export_forced_despite_qa(self, run, tmp_path, data_dir):
        deck_file = tmp_path / "deck.yaml"
        deck_file.write_text("title: Roadmap\nslides: []\n", encoding="utf-8")
        failing = QAResult(issues=[Issue("error", -1, "", "slide_count", "boom")])

        with patch("deckplate.cli.DeckValidator") as validator:
            validator.return_value.validate.return_value = failing
            out, err = run("export", str(deck_file), "--force")
        assert "boom" in err
        assert (data_dir / "exports" / out.strip()).is_file()

    def test_export_not_a_mapping(self, run, tmp_path, capsys):
        deck_file = tmp_path / "deck.yaml"
        deck_file.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(SystemExit):
            run("export", str(deck_file))
        assert "expected a mapping" in capsys.readouterr().err


class TestHousekeeping:
    def test_delete(self, run, template_id, data_dir):
        _out, err = run("delete", template_id)
        assert f"Deleted {template_id}" in err
        assert not (data_dir / "templates" / f"{template_id}.json").exists()

    def test_delete_missing(self, run):
        with pytest.raises(SystemExit):
            run("delete", "template_0_missing")

    def test_delete_parent_dir_refused(self, run, template_id, data_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run("delete", "..")
        assert exc_info.value.code == 1
        assert "Template not found" in capsys.readouterr().err
        assert (data_dir / "templates" / f"{template_id}.json").is_file()

    def test_cleanup(self, run, template_id):
        _out, err = run("cleanup", "--max-age-hours", "1")
        assert "Removed 0 template(s) older than 1h" in err

    def test_parse_invalid_package(self, run, tmp_path, capsys):
        bogus = tmp_path / "bogus.pptx"
        bogus.write_bytes(b"not a zip")
        with pytest.raises(SystemExit):
            run("parse", str(bogus))
        assert "Not a zip" in capsys.readouterr().err
