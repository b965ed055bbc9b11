"""Shared fixtures: hand-built OOXML packages and in-memory templates."""

import zipfile

import pytest

from deckplate.extractor.variables import extract_variables
from deckplate.schema.models import (
    ParsedTemplate,
    TemplateContent,
    TemplateMetadata,
    TemplateSlide,
    TemplateStyles,
    TemplateVariable,
    derive_title,
)
from deckplate.store.template_store import TemplateStore


NS_DECL = (
    'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
    'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships" '
    'xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main"'
)
SLIDE_RELTYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/slide"


# ---------------------------------------------------------------------------
# XML part builders
# ---------------------------------------------------------------------------

def shape_xml(*paragraphs, x=914400, y=457200, cx=7315200, cy=1143000):
    """One p:sp.  Each paragraph is a string or a list of run texts."""
    paras = []
    for para in paragraphs:
        runs = [para] if isinstance(para, str) else para
        paras.append("<a:p>" + "".join(f"<a:r><a:t>{t}</a:t></a:r>" for t in runs)
                     + "</a:p>")
    return (
        "<p:sp><p:nvSpPr><p:cNvPr id=\"2\" name=\"Text\"/><p:cNvSpPr/><p:nvPr/></p:nvSpPr>"
        f"<p:spPr><a:xfrm><a:off x=\"{x}\" y=\"{y}\"/><a:ext cx=\"{cx}\" cy=\"{cy}\"/></a:xfrm></p:spPr>"
        f"<p:txBody><a:bodyPr/>{''.join(paras)}</p:txBody></p:sp>"
    )


def slide_xml(*shapes):
    """A slide part holding the given p:sp snippets (strings become one-run shapes)."""
    body = "".join(s if s.startswith("<") else shape_xml(s) for s in shapes)
    return (
        f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f"<p:sld {NS_DECL}><p:cSld><p:spTree>"
        "<p:nvGrpSpPr><p:cNvPr id=\"1\" name=\"\"/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr>"
        f"<p:grpSpPr/>{body}</p:spTree></p:cSld></p:sld>"
    )


def presentation_xml(rel_ids):
    ids = "".join(f'<p:sldId id="{256 + i}" r:id="{rid}"/>'
                  for i, rid in enumerate(rel_ids))
    return (f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            f"<p:presentation {NS_DECL}><p:sldIdLst>{ids}</p:sldIdLst></p:presentation>")


def presentation_rels_xml(targets):
    """targets: {rel_id: 'slides/slideN.xml'}."""
    rels = "".join(f'<Relationship Id="{rid}" Type="{SLIDE_RELTYPE}" Target="{target}"/>'
                   for rid, target in targets.items())
    return ('<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
            f"{rels}</Relationships>")


THEME_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<a:theme xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" name="Office">'
    "<a:themeElements>"
    '<a:clrScheme name="Office">'
    '<a:dk1><a:sysClr val="windowText" lastClr="000000"/></a:dk1>'
    '<a:lt1><a:sysClr val="window" lastClr="ffffff"/></a:lt1>'
    '<a:dk2><a:srgbClr val="44546A"/></a:dk2>'
    '<a:lt2><a:srgbClr val="E7E6E6"/></a:lt2>'
    '<a:accent1><a:srgbClr val="4472c4"/></a:accent1>'
    '<a:accent2><a:srgbClr val="ED7D31"/></a:accent2>'
    '<a:accent3><a:srgbClr val="A5A5A5"/></a:accent3>'
    '<a:accent4><a:srgbClr val="FFC000"/></a:accent4>'
    '<a:accent5><a:srgbClr val="5B9BD5"/></a:accent5>'
    '<a:accent6><a:srgbClr val="70AD47"/></a:accent6>'
    '<a:hlink><a:srgbClr val="0563C1"/></a:hlink>'
    '<a:folHlink><a:srgbClr val="954F72"/></a:folHlink>'
    "</a:clrScheme>"
    '<a:fontScheme name="Office">'
    '<a:majorFont><a:latin typeface="Calibri Light"/></a:majorFont>'
    '<a:minorFont><a:latin typeface="Calibri"/></a:minorFont>'
    "</a:fontScheme>"
    "</a:themeElements></a:theme>"
)

THEME_COLORS = [
    "#4472C4", "#ED7D31", "#A5A5A5", "#FFC000", "#5B9BD5", "#70AD47",
    "#000000", "#FFFFFF", "#44546A", "#E7E6E6", "#0563C1", "#954F72",
]

MASTER_XML = f'<?xml version="1.0" encoding="UTF-8"?><p:sldMaster {NS_DECL}/>'


def write_package(path, slides, order=None, theme=True, masters=1,
                  presentation=True, rels=True, extra=None):
    """Write a minimal .pptx-shaped zip.

    ``slides`` are slide part bodies stored as slide1.xml, slide2.xml, ...
    ``order`` lists 1-based slide file numbers in declared deck order.
    """
    order = order or list(range(1, len(slides) + 1))
    rel_ids = [f"rId{n + 1}" for n in order]
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml",
                    '<?xml version="1.0"?><Types xmlns="http://schemas.openxmlformats.org/'
                    'package/2006/content-types"/>')
        if presentation:
            zf.writestr("ppt/presentation.xml", presentation_xml(rel_ids))
        if rels:
            zf.writestr("ppt/_rels/presentation.xml.rels", presentation_rels_xml(
                {f"rId{n + 1}": f"slides/slide{n}.xml" for n in order}))
        for n, body in enumerate(slides, start=1):
            zf.writestr(f"ppt/slides/slide{n}.xml", body)
        if theme:
            zf.writestr("ppt/theme/theme1.xml", theme if isinstance(theme, str) else THEME_XML)
        for n in range(1, masters + 1):
            zf.writestr(f"ppt/slideMasters/slideMaster{n}.xml", MASTER_XML)
        for name, data in (extra or {}).items():
            zf.writestr(name, data)
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store(tmp_path):
    return TemplateStore(tmp_path / "templates")


@pytest.fixture
def greeting_pptx(tmp_path):
    """Two slides: a title slide and a greeting with both placeholder syntaxes."""
    return write_package(tmp_path / "Greeting.pptx", [
        slide_xml("Quarterly Review", "Prepared by {{author}}"),
        slide_xml("Hello {{name}}, welcome to ${event}", "Contact: {{ author }}"),
    ])


def make_template(*texts, template_id="template_1_abc", name="Deck"):
    """A ParsedTemplate with one single-shape slide per text."""
    slides, names = [], []
    for n, text in enumerate(texts, start=1):
        content = [TemplateContent(content=text, variables=extract_variables(text))]
        variables = extract_variables(text)
        names.extend(v for v in variables if v not in names)
        slides.append(TemplateSlide(slide_number=n, slide_id=f"slide{n}",
                                    title=derive_title(content), content=content,
                                    variables=variables))
    return ParsedTemplate(
        template_id=template_id,
        name=name,
        slides=slides,
        variables=[TemplateVariable(name=v) for v in names],
        styles=TemplateStyles(),
        metadata=TemplateMetadata(original_file_name=f"{name}.pptx",
                                  parsed_at="2026-01-01T00:00:00+00:00",
                                  slide_count=len(slides),
                                  has_variables=bool(names)),
    )


@pytest.fixture
def greeting_template():
    return make_template("Hello {{name}}, welcome to ${event}")
