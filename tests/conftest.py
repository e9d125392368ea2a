"""Shared builders for Word documents used across the test-suite."""

from pathlib import Path

import pytest
from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.packuri import PackURI
from docx.opc.part import Part
from docx.oxml import parse_xml
from docx.oxml.ns import nsdecls, qn

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
DGM_NS = "http://schemas.openxmlformats.org/drawingml/2006/diagram"

FOOTNOTES_CT = "application/vnd.openxmlformats-officedocument.wordprocessingml.footnotes+xml"
ENDNOTES_CT = "application/vnd.openxmlformats-officedocument.wordprocessingml.endnotes+xml"
COMMENTS_CT = "application/vnd.openxmlformats-officedocument.wordprocessingml.comments+xml"
DIAGRAM_DATA_CT = "application/vnd.openxmlformats-officedocument.drawingml.diagramData+xml"

FOOTNOTES_XML = f"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<w:footnotes xmlns:w="{W_NS}">
  <w:footnote w:type="separator" w:id="-1"><w:p><w:r><w:separator/></w:r></w:p></w:footnote>
  <w:footnote w:id="1"><w:p><w:r><w:rPr><w:i/></w:rPr><w:t>Footnote text.</w:t></w:r></w:p></w:footnote>
</w:footnotes>"""

ENDNOTES_XML = f"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<w:endnotes xmlns:w="{W_NS}">
  <w:endnote w:type="separator" w:id="-1"><w:p><w:r><w:separator/></w:r></w:p></w:endnote>
  <w:endnote w:id="1"><w:p><w:r><w:t>Endnote text.</w:t></w:r></w:p></w:endnote>
</w:endnotes>"""

COMMENTS_XML = f"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<w:comments xmlns:w="{W_NS}">
  <w:comment w:id="0" w:author="Reviewer"><w:p><w:r><w:t>Comment text.</w:t></w:r></w:p></w:comment>
</w:comments>"""

DIAGRAM_XML = f"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<dgm:dataModel xmlns:dgm="{DGM_NS}" xmlns:a="{A_NS}">
  <dgm:ptLst>
    <dgm:pt modelId="1"><dgm:t><a:p><a:r><a:t>Node one</a:t></a:r></a:p></dgm:t></dgm:pt>
    <dgm:pt modelId="2"><dgm:t><a:p><a:r><a:t>   </a:t></a:r></a:p></dgm:t></dgm:pt>
    <dgm:pt modelId="3"><dgm:t><a:p><a:r><a:t>Node two</a:t></a:r></a:p></dgm:t></dgm:pt>
  </dgm:ptLst>
</dgm:dataModel>"""


def append_block(document, xml: str):
    """Insert a block-level element before the body's section properties."""

    element = parse_xml(xml)
    body = document.element.body
    sect_pr = body.find(qn("w:sectPr"))
    if sect_pr is not None:
        sect_pr.addprevious(element)
    else:
        body.append(element)
    return element


def add_part(document, partname: str, content_type: str, blob: str, reltype: str) -> Part:
    part = Part(PackURI(partname), content_type, blob.encode("utf-8"), document.part.package)
    document.part.relate_to(part, reltype)
    return part


def build_rich_document(path: Path) -> Path:
    """A document exercising every discovery source."""

    document = Document()
    paragraph = document.add_paragraph()
    paragraph.add_run("Hello ").bold = True
    paragraph.add_run("world.")

    append_block(
        document,
        f'<w:sdt {nsdecls("w")}><w:sdtPr><w:tag w:val="TextBox1"/></w:sdtPr>'
        "<w:sdtContent><w:p><w:r><w:t>Boxed text.</w:t></w:r></w:p></w:sdtContent></w:sdt>",
    )
    append_block(
        document,
        f'<w:p {nsdecls("w")}><w:r><w:drawing><w:txbxContent>'
        "<w:p><w:r><w:t>Shape text.</w:t></w:r></w:p>"
        "</w:txbxContent></w:drawing></w:r></w:p>",
    )
    append_block(
        document,
        f'<w:p {nsdecls("w")}><w:fldSimple w:instr="TITLE">'
        "<w:r><w:t>Field result</w:t></w:r></w:fldSimple></w:p>",
    )
    r_id = document.part.relate_to("https://example.com", RT.HYPERLINK, is_external=True)
    append_block(
        document,
        f'<w:p {nsdecls("w", "r")}><w:r><w:t xml:space="preserve">See </w:t></w:r>'
        f'<w:hyperlink r:id="{r_id}"><w:r><w:t>the link</w:t></w:r></w:hyperlink></w:p>',
    )
    append_block(
        document,
        f'<w:p {nsdecls("w", "r")}><w:hyperlink r:id="{r_id}">'
        "<w:p><w:r><w:t>Linked block.</w:t></w:r></w:p></w:hyperlink></w:p>",
    )
    append_block(
        document,
        f'<w:p {nsdecls("w", "r")}><w:hyperlink r:id="rId999">'
        "<w:p><w:r><w:t>Dangling block.</w:t></w:r></w:p></w:hyperlink></w:p>",
    )
    append_block(
        document,
        f'<w:p {nsdecls("w")}><w:bookmarkStart w:id="0" w:name="mark"/>'
        '<w:r><w:t>Marked text.</w:t></w:r><w:bookmarkEnd w:id="0"/></w:p>',
    )

    document.sections[0].header.add_paragraph("Header text.")
    document.sections[0].footer.add_paragraph("Footer text.")

    add_part(document, "/word/footnotes.xml", FOOTNOTES_CT, FOOTNOTES_XML, RT.FOOTNOTES)
    add_part(document, "/word/endnotes.xml", ENDNOTES_CT, ENDNOTES_XML, RT.ENDNOTES)
    add_part(document, "/word/comments.xml", COMMENTS_CT, COMMENTS_XML, RT.COMMENTS)
    add_part(document, "/word/diagrams/data1.xml", DIAGRAM_DATA_CT, DIAGRAM_XML, RT.DIAGRAM_DATA)

    document.save(str(path))
    return path


@pytest.fixture
def rich_docx(tmp_path) -> Path:
    return build_rich_document(tmp_path / "rich.docx")


@pytest.fixture
def plain_docx(tmp_path) -> Path:
    document = Document()
    document.add_paragraph("Just one paragraph.")
    path = tmp_path / "plain.docx"
    document.save(str(path))
    return path
