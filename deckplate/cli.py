"""CLI entry point for deckplate.

Drives the template pipeline: upload and parse a .pptx template, inspect
stored templates, bind data, and export decks.

Usage::

    # Parse a template and store it
    deckplate parse templates/quarterly.pptx --type logo=image

    # List and inspect stored templates
    deckplate list
    deckplate show template_1718000000000_ab12cd34e --yaml

    # Bind data and write the resulting generic deck as YAML
    deckplate render template_1718000000000_ab12cd34e \\
        --data data/q3.yaml -o output/q3_deck.yaml

    # Export a deck description to .pptx, styled after a stored template
    deckplate export output/q3_deck.yaml \\
        --template-id template_1718000000000_ab12cd34e

    # Bind + export in one go
    deckplate export-template template_1718000000000_ab12cd34e --data data/q3.yaml

    # Housekeeping
    deckplate delete template_1718000000000_ab12cd34e
    deckplate cleanup --max-age-hours 24
"""

import argparse
import logging
import sys

import yaml

from deckplate.config import Settings, get_settings
from deckplate.errors import DeckplateError
from deckplate.generator.pptx_builder import PPTXBuilder
from deckplate.processor.binder import convert_to_presentation, find_unresolved_variables
from deckplate.qa.validator import DeckValidator
from deckplate.schema.loader import (
    dump_template,
    load_data_map,
    load_presentation,
    save_presentation,
)
from deckplate.schema.models import ExportTheme
from deckplate.service import TemplateService, build_service


# ---------------------------------------------------------------------------
# Service construction
# ---------------------------------------------------------------------------

def _settings(args) -> Settings:
    """Settings from the environment plus CLI overrides."""
    overrides = {}
    if getattr(args, "data_dir", None):
        overrides["data_dir"] = args.data_dir
    if getattr(args, "slide_order", None):
        overrides["slide_order"] = args.slide_order
    return get_settings(**overrides)


def _build_service(args) -> TemplateService:
    return build_service(_settings(args))


def _parse_type_hints(pairs):
    hints = {}
    for pair in pairs or []:
        name, sep, kind = pair.partition("=")
        if not sep or not name.strip():
            _error(f"Invalid --type {pair!r}; expected NAME=KIND")
        hints[name.strip()] = kind.strip()
    return hints


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_parse(args):
    """Parse and store a template."""
    service = _build_service(args)
    template = service.upload(args.pptx, args.name,
                              variable_types=_parse_type_hints(args.type))
    _info(f"Template: {template.template_id}")
    _info(f"Slides:   {template.metadata.slide_count}")
    names = template.variable_names()
    _info(f"Variables: {len(names)}" + (f" ({', '.join(names)})" if names else ""))
    print(template.template_id)


def cmd_list(args):
    """List stored templates."""
    service = _build_service(args)
    templates = service.list()
    if not templates:
        _info("No templates stored")
        return
    for t in templates:
        print(f"{t.template_id}  {t.name:30s}  "
              f"{t.metadata.slide_count:3d} slide(s)  "
              f"{len(t.variables):3d} variable(s)")


def cmd_show(args):
    """Show one stored template."""
    service = _build_service(args)
    template = service.get(args.template_id)

    if args.yaml:
        print(dump_template(template, include_theme=args.theme), end="")
        return

    print(f"Template:    {template.template_id}")
    print(f"Name:        {template.name}")
    print(f"Source:      {template.metadata.original_file_name}")
    print(f"Parsed at:   {template.metadata.parsed_at}")
    print(f"Slides:      {template.metadata.slide_count}")
    print(f"Colors:      {', '.join(template.styles.color_scheme)}")
    print(f"Fonts:       {', '.join(template.styles.font_families)}")
    print(f"Masters:     {', '.join(template.styles.master_layouts) or '-'}")
    print()
    for slide in template.slides:
        variables = f" [{', '.join(slide.variables)}]" if slide.variables else ""
        print(f"  [{slide.slide_number:2d}] {slide.slide_id:10s} "
              f"{slide.title or '(untitled)'}{variables}")
    if template.variables:
        print()
        for var in template.variables:
            print(f"  {var.placeholder:30s} {var.type.value}")


def cmd_render(args):
    """Bind data into a template and output the generic deck."""
    service = _build_service(args)
    data = load_data_map(args.data)
    bound = service.bind(args.template_id, data)

    unresolved = find_unresolved_variables(bound)
    if unresolved:
        _warn(f"Unresolved variables: {', '.join(unresolved)}")

    deck = convert_to_presentation(bound, args.title or bound.name)
    if args.output:
        save_presentation(deck, args.output)
        _info(f"Written: {args.output}")
    else:
        print(yaml.dump(deck.to_dict(), sort_keys=False, allow_unicode=True), end="")


def _export_checked(service: TemplateService, presentation, theme, args):
    """Render, run QA unless skipped, then store the deck."""
    pptx_bytes = PPTXBuilder(theme).build(presentation)

    if not args.skip_qa:
        _info("Running QA validation...")
        qa_result = DeckValidator(presentation).validate(pptx_bytes)
        if qa_result.passed and not qa_result.warnings:
            _info(qa_result.summary())
        else:
            _warn(qa_result.summary())
            if args.verbose or not qa_result.passed:
                print(qa_result.report(), file=sys.stderr)
            if not qa_result.passed and not args.force:
                _error("QA validation failed. Use --force to write anyway, "
                       "or --skip-qa to skip validation.")
    else:
        _info("QA validation skipped (--skip-qa)")

    result = service.exporter.write(presentation.title, pptx_bytes)
    _info(f"Written: {result.file_path} ({result.size:,} bytes)")
    print(result.file_name)


def cmd_export(args):
    """Export a YAML/JSON deck description to .pptx."""
    service = _build_service(args)
    presentation = load_presentation(args.presentation)
    theme = None
    if args.template_id:
        theme = ExportTheme.from_styles(service.get(args.template_id).styles)
    _export_checked(service, presentation, theme, args)


def cmd_export_template(args):
    """Bind data into a template and export it in the template's styling."""
    service = _build_service(args)
    template, presentation = service.render_with_template(
        args.template_id, load_data_map(args.data), args.title)
    _export_checked(service, presentation, ExportTheme.from_styles(template.styles), args)


def cmd_delete(args):
    """Delete a stored template and its working directory."""
    service = _build_service(args)
    service.delete(args.template_id)
    _info(f"Deleted {args.template_id}")


def cmd_cleanup(args):
    """Purge templates older than the age threshold."""
    settings = _settings(args)
    hours = args.max_age_hours
    if hours is None:
        hours = settings.template_max_age_hours
    removed = build_service(settings).cleanup(int(hours * 3600 * 1000))
    _info(f"Removed {removed} template(s) older than {hours:g}h")


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _info(msg):
    print(f"  {msg}", file=sys.stderr)


def _warn(msg):
    print(f"  WARNING: {msg}", file=sys.stderr)


def _error(msg):
    print(f"  ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="deckplate",
        description="Parse PowerPoint templates, bind data and export decks.",
    )
    parser.add_argument(
        "--data-dir",
        help="Root for template records and exports (default: $DECKPLATE_DATA_DIR or ./data).",
    )
    parser.add_argument(
        "--slide-order",
        choices=["relationships", "filename"],
        help="How slide order is determined when parsing.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Debug logging and full QA reports.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- parse ----
    prs = subparsers.add_parser("parse", help="Parse and store a .pptx template.")
    prs.add_argument("pptx", help="Path to the .pptx file.")
    prs.add_argument("--name", help="Original file name (default: the path's name).")
    prs.add_argument(
        "--type",
        action="append",
        metavar="NAME=KIND",
        help="Variable type hint (text, image, chart, table). Repeatable.",
    )
    prs.set_defaults(func=cmd_parse)

    # ---- list ----
    lst = subparsers.add_parser("list", help="List stored templates.")
    lst.set_defaults(func=cmd_list)

    # ---- show ----
    show = subparsers.add_parser("show", help="Show a stored template.")
    show.add_argument("template_id")
    show.add_argument("--yaml", action="store_true", default=False,
                      help="Dump the full record as YAML.")
    show.add_argument("--theme", action="store_true", default=False,
                      help="Include the raw theme tree in the YAML dump.")
    show.set_defaults(func=cmd_show)

    # ---- render ----
    ren = subparsers.add_parser("render", help="Bind data and output the generic deck.")
    ren.add_argument("template_id")
    ren.add_argument("--data", required=True, help="YAML/JSON variable map.")
    ren.add_argument("--title", help="Deck title (default: template name).")
    ren.add_argument("-o", "--output", help="Write the deck as YAML/JSON here.")
    ren.set_defaults(func=cmd_render)

    # ---- export ----
    exp = subparsers.add_parser("export", help="Export a deck description to .pptx.")
    exp.add_argument("presentation", help="YAML/JSON deck description.")
    exp.add_argument("--template-id", help="Style the deck after this template.")
    _add_qa_args(exp)
    exp.set_defaults(func=cmd_export)

    # ---- export-template ----
    ext = subparsers.add_parser("export-template",
                                help="Bind data into a template and export it.")
    ext.add_argument("template_id")
    ext.add_argument("--data", required=True, help="YAML/JSON variable map.")
    ext.add_argument("--title", help="Deck title (default: template name).")
    _add_qa_args(ext)
    ext.set_defaults(func=cmd_export_template)

    # ---- delete ----
    dele = subparsers.add_parser("delete", help="Delete a stored template.")
    dele.add_argument("template_id")
    dele.set_defaults(func=cmd_delete)

    # ---- cleanup ----
    cln = subparsers.add_parser("cleanup", help="Purge stale templates.")
    cln.add_argument("--max-age-hours", type=float, default=None,
                     help="Age threshold in hours "
                          "(default: $DECKPLATE_TEMPLATE_MAX_AGE_HOURS or 24).")
    cln.set_defaults(func=cmd_cleanup)

    return parser


def _add_qa_args(parser):
    """Add --skip-qa / --force to an export subparser."""
    parser.add_argument(
        "--skip-qa",
        action="store_true",
        default=False,
        help="Skip QA validation of the rendered deck.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Write output even if QA validation fails.",
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except DeckplateError as exc:
        _error(str(exc))
    except (OSError, ValueError) as exc:
        _error(str(exc))


if __name__ == "__main__":
    main()
