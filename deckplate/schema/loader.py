"""Loader - YAML/JSON serialization for presentations, data maps and templates.

YAML is a superset of JSON, so ``yaml.safe_load`` reads either format; the
writers pick the format from the file extension.
"""

import json
from pathlib import Path
from typing import Any

import yaml

from .models import ParsedTemplate, Presentation


def _read(path: str | Path) -> Any:
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def _write(data: Any, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            json.dump(data, f, ensure_ascii=False, indent=2)
        else:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False,
                      allow_unicode=True, width=120)


def load_presentation(path: str | Path) -> Presentation:
    """Read a Presentation from a YAML or JSON file."""
    data = _read(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping with 'title' and 'slides'")
    return Presentation.from_dict(data)


def save_presentation(presentation: Presentation, path: str | Path) -> None:
    """Write a Presentation as YAML (or JSON for a .json path)."""
    _write(presentation.to_dict(), path)


def load_data_map(path: str | Path) -> dict[str, Any]:
    """Read a variable-name -> value mapping, preserving file order."""
    data = _read(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of variable names to values")
    return {str(k): v for k, v in data.items()}


def dump_template(template: ParsedTemplate, include_theme: bool = False) -> str:
    """Render a parsed template as human-readable YAML."""
    data = template.to_dict()
    if not include_theme:
        data["styles"].pop("theme", None)
    return yaml.dump(data, default_flow_style=False, sort_keys=False,
                     allow_unicode=True, width=120)
