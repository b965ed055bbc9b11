"""XML part parser - decodes single OOXML parts into lxml trees.

Only a small subset of PresentationML/DrawingML is interpreted anywhere in
deckplate; everything else is kept in the tree untouched.  The lookup
helpers below return ``None`` (or an empty list) for absent nodes so callers
can walk optional sub-trees without try/except at every level.
"""

from pathlib import Path
from typing import Any

from lxml import etree

from deckplate.errors import XmlParseError


NS = {
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "p": "http://schemas.openxmlformats.org/presentationml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "pr": "http://schemas.openxmlformats.org/package/2006/relationships",
}

SLIDE_RELTYPE = (
    "http://schemas.openxmlformats.org/officeDocument/2006/relationships/slide"
)

# No DTD entity expansion, no network access: uploads are untrusted input.
_PARSER = etree.XMLParser(resolve_entities=False, no_network=True,
                          load_dtd=False, huge_tree=False)

Element = etree._Element


def qn(tag: str) -> str:
    """'p:sp' -> '{http://...presentationml...}sp'."""
    prefix, _, local = tag.partition(":")
    return f"{{{NS[prefix]}}}{local}"


def parse_xml(data: bytes | str, part: str | None = None) -> Element:
    """Parse one part.  Raises XmlParseError on malformed markup."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        return etree.fromstring(data, _PARSER)
    except (etree.XMLSyntaxError, ValueError) as exc:
        where = part or "XML part"
        raise XmlParseError(f"Malformed XML in {where}: {exc}", part=part) from exc


def read_part(path: str | Path) -> Element:
    """Read and parse a part from disk."""
    path = Path(path)
    return parse_xml(path.read_bytes(), part=path.name)


# ---------------------------------------------------------------------------
# Optional-path lookups
# ---------------------------------------------------------------------------

def find_first(node: Element | None, path: str) -> Element | None:
    if node is None:
        return None
    return node.find(path, NS)


def find_all(node: Element | None, path: str) -> list[Element]:
    if node is None:
        return []
    return node.findall(path, NS)


def attr_of(node: Element | None, name: str, path: str | None = None) -> str | None:
    """Attribute ``name`` ('val' or prefixed 'r:id') of node, or of node/path."""
    target = find_first(node, path) if path else node
    if target is None:
        return None
    return target.get(qn(name) if ":" in name else name)


def text_of(node: Element | None, path: str | None = None) -> str | None:
    target = find_first(node, path) if path else node
    if target is None:
        return None
    return target.text


def int_attr(node: Element | None, name: str, path: str | None = None) -> int | None:
    value = attr_of(node, name, path)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# JSON-friendly tree
# ---------------------------------------------------------------------------

def _prefixed(name: str, nsmap: dict) -> str:
    if not name.startswith("{"):
        return name
    uri, local = name[1:].split("}", 1)
    for prefix, ns_uri in nsmap.items():
        if ns_uri == uri and prefix:
            return f"{prefix}:{local}"
    return local


def element_to_tree(node: Element) -> dict[str, Any]:
    """Convert an element into nested dicts with prefixed tag names."""
    tree: dict[str, Any] = {"tag": _prefixed(node.tag, node.nsmap)}
    if node.attrib:
        tree["attrs"] = {_prefixed(k, node.nsmap): v for k, v in node.attrib.items()}
    if node.text and node.text.strip():
        tree["text"] = node.text
    children = [element_to_tree(child) for child in node
                if isinstance(child.tag, str)]
    if children:
        tree["children"] = children
    return tree
