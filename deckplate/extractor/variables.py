"""Placeholder variable extraction.

Two syntaxes are recognised, and may be mixed in one text::

    Hello {{ name }}, welcome to ${event}

Names are stored bare; the canonical re-renderable form is always
``{{name}}``.  Unterminated or empty placeholders simply do not match.
"""

import re

_PLACEHOLDER_RE = re.compile(r"\{\{([^{}]+)\}\}|\$\{([^{}]+)\}")


def extract_variables(text: str) -> list[str]:
    """Return placeholder names in first-seen order, without duplicates."""
    names: list[str] = []
    if not text:
        return names
    for match in _PLACEHOLDER_RE.finditer(text):
        name = (match.group(1) or match.group(2)).strip()
        if name and name not in names:
            names.append(name)
    return names


def canonical_placeholder(name: str) -> str:
    return "{{" + name + "}}"


def placeholder_pattern(name: str) -> re.Pattern:
    """Regex matching every spelling of one variable's placeholder."""
    escaped = re.escape(name)
    return re.compile(r"\{\{\s*" + escaped + r"\s*\}\}|\$\{\s*" + escaped + r"\s*\}")


def has_placeholders(text: str) -> bool:
    return bool(_PLACEHOLDER_RE.search(text or ""))
