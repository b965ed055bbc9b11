"""Slide content normalization.

Slide content arrives loosely typed (a string, a list of strings or dicts
with ``children``, a table dict).  ``normalize_content`` flattens it into
text lines and classifies the result as exactly one of:

- ``TextBlock``  - a single line of text
- ``Table``      - a markdown-like pipe table (header row + body rows)
- ``BulletList`` - bulleted and numbered items with indent levels

The renderer only ever sees these three types.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

# Indent levels run 0..MAX_INDENT_LEVEL, i.e. six levels of nesting
MAX_INDENT_LEVEL = 5
INDENT_WIDTH = 2

_NUMBERED_RE = re.compile(r"^(\s*)(\d+)\.\s+(.*)$")
_BULLET_RE = re.compile(r"^(\s*)(?:[-•–*]\s*)?(.*)$")
_RULE_ROW_RE = re.compile(r"^\|?\s*:?-+:?\s*(\|\s*:?-+:?\s*)*\|?$")

_TEXT_KEYS = ("text", "title", "content", "label", "value")


# ---------------------------------------------------------------------------
# Normalized content types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ListItem:
    text: str
    level: int = 0
    numbered: bool = False
    number: int | None = None   # the source number of a numbered item


@dataclass(frozen=True)
class BulletList:
    items: tuple[ListItem, ...] = ()


@dataclass(frozen=True)
class Table:
    rows: tuple[tuple[str, ...], ...]

    @property
    def column_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    @property
    def header(self) -> tuple[str, ...]:
        return self.rows[0] if self.rows else ()

    @property
    def body(self) -> tuple[tuple[str, ...], ...]:
        return self.rows[1:]


SlideBody = TextBlock | BulletList | Table


# ---------------------------------------------------------------------------
# Flattening to lines
# ---------------------------------------------------------------------------

def _item_lines(item: Any, depth: int) -> list[str]:
    indent = " " * (INDENT_WIDTH * depth)
    if item is None:
        return []
    if isinstance(item, str):
        return [indent + line for line in item.splitlines()]
    if isinstance(item, dict):
        text = next((item[k] for k in _TEXT_KEYS if isinstance(item.get(k), str)), None)
        children = item.get("children") or []
        if not isinstance(children, (list, tuple)):
            children = [children]
        lines = []
        if text is not None:
            lines.extend(_item_lines(text, depth))
        elif not children:
            lines.append(indent + json.dumps(item, ensure_ascii=False))
        for child in children:
            lines.extend(_item_lines(child, depth + 1))
        return lines
    if isinstance(item, (list, tuple)):
        return [line for child in item for line in _item_lines(child, depth + 1)]
    return [indent + str(item)]


def _table_dict_lines(table: dict) -> list[str]:
    rows = [[str(c) for c in row] for row in table.get("rows") or []]
    headers = [str(h) for h in table.get("headers") or []]
    if not headers and rows:
        headers, rows = rows[0], rows[1:]
    if not headers:
        return []
    lines = [" | ".join(headers), " | ".join("---" for _ in headers)]
    lines.extend(" | ".join(row) for row in rows)
    return lines


def content_to_lines(content: Any) -> list[str]:
    """Flatten any supported content shape into text lines.

    Nesting (``children``, nested lists) becomes leading indentation, two
    spaces per level.
    """
    if content is None:
        return []
    if isinstance(content, str):
        return content.splitlines()
    if isinstance(content, dict):
        if "rows" in content:
            return _table_dict_lines(content)
        return _item_lines(content, 0)
    if isinstance(content, (list, tuple)):
        return [line for item in content for line in _item_lines(item, 0)]
    return [str(content)]


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def looks_like_table(lines: list[str]) -> bool:
    """Line 1 has a pipe and line 2 is a markdown separator row."""
    return len(lines) >= 2 and "|" in lines[0] and _is_rule_row(lines[1])


def _is_rule_row(line: str) -> bool:
    line = line.strip()
    return "|" in line and _RULE_ROW_RE.match(line) is not None


def _split_row(line: str) -> list[str]:
    line = line.strip()
    if line.startswith("|"):
        line = line[1:]
    if line.endswith("|"):
        line = line[:-1]
    return [cell.strip() for cell in line.split("|")]


def parse_table(lines: list[str]) -> Table:
    rows = [_split_row(line) for line in lines
            if "|" in line and not _is_rule_row(line)]
    width = max((len(r) for r in rows), default=1)
    return Table(rows=tuple(tuple(r + [""] * (width - len(r))) for r in rows))


def _indent_level(whitespace: str) -> int:
    return min(len(whitespace) // INDENT_WIDTH, MAX_INDENT_LEVEL)


def parse_list_item(line: str) -> ListItem:
    numbered = _NUMBERED_RE.match(line)
    if numbered:
        return ListItem(
            text=numbered.group(3).strip(),
            level=_indent_level(numbered.group(1)),
            numbered=True,
            number=int(numbered.group(2)),
        )
    bullet = _BULLET_RE.match(line)
    return ListItem(text=bullet.group(2).strip(), level=_indent_level(bullet.group(1)))


def normalize_content(content: Any) -> SlideBody:
    """Classify slide content as a TextBlock, Table or BulletList."""
    lines = [line for line in content_to_lines(content) if line.strip()]
    if not lines:
        return BulletList()
    if len(lines) == 1:
        return TextBlock(lines[0].strip())
    if looks_like_table(lines):
        table = parse_table(lines)
        if table.rows:
            return table
    return BulletList(tuple(parse_list_item(line) for line in lines))
