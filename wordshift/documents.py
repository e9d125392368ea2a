"""Document storage on top of python-docx packages."""

from __future__ import annotations

import logging
import pathlib
import shutil
import zipfile
from typing import Dict, List, Optional, Set

from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.exceptions import PackageNotFoundError
from docx.opc.part import Part, XmlPart
from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import qn
from lxml import etree

from .errors import DocumentStructureError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

W_P = qn("w:p")
W_R = qn("w:r")
W_T = qn("w:t")
W_RPR = qn("w:rPr")
XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"


class DocxRun:
    """Adapts a ``w:r`` element to the run interface.

    The text is the concatenation of the run's ``w:t`` children; the
    formatting descriptor is its ``w:rPr`` element, which is never touched.
    """

    __slots__ = ("element",)

    def __init__(self, element) -> None:
        self.element = element

    @property
    def text(self) -> str:
        return "".join(node.text or "" for node in self.element.findall(W_T))

    @text.setter
    def text(self, value: str) -> None:
        nodes = self.element.findall(W_T)
        if not nodes:
            if not value:
                return
            node = OxmlElement("w:t")
            self.element.append(node)
            nodes = [node]
        first, rest = nodes[0], nodes[1:]
        first.text = value
        first.set(XML_SPACE, "preserve")
        for node in rest:
            node.text = ""

    @property
    def formatting(self):
        return self.element.find(W_RPR)

    def __repr__(self) -> str:
        return f"DocxRun({self.text!r})"


def owning_paragraph(element):
    """Return the nearest ``w:p`` ancestor of an element, if any."""

    parent = element.getparent()
    while parent is not None and parent.tag != W_P:
        parent = parent.getparent()
    return parent


def paragraph_runs(paragraph) -> List[DocxRun]:
    """Collect the runs that belong to this paragraph in document order.

    Runs wrapped in hyperlinks, fields or inline content controls count;
    runs of paragraphs nested inside a drawing do not.
    """

    return [
        DocxRun(run)
        for run in paragraph.iter(W_R)
        if owning_paragraph(run) is paragraph
    ]


class DocumentPart:
    """One XML part of the package: main document, header, notes, diagram data."""

    def __init__(self, part: Part, kind: str) -> None:
        self.part = part
        self.kind = kind
        self._element = None

    @property
    def partname(self) -> str:
        return str(self.part.partname)

    @property
    def element(self):
        if self._element is None:
            if isinstance(self.part, XmlPart):
                self._element = self.part.element
            else:
                try:
                    self._element = parse_xml(self.part.blob)
                except etree.XMLSyntaxError as exc:
                    raise DocumentStructureError(
                        f"Part {self.partname} is not well-formed XML: {exc}"
                    ) from exc
        return self._element

    def path_of(self, element) -> str:
        """Stable tree path of an element inside this part."""

        return self.element.getroottree().getpath(element)

    def save(self) -> None:
        """Write the edited tree back into the package part."""

        if self._element is None or isinstance(self.part, XmlPart):
            return
        self.part._blob = etree.tostring(
            self._element,
            xml_declaration=True,
            encoding="UTF-8",
            standalone=True,
        )
        logger.debug("Committed part %s", self.partname)


class WordDocument:
    """A .docx file opened for in-place editing."""

    def __init__(self, path: pathlib.Path) -> None:
        self.path = pathlib.Path(path)
        ensure_supported(self.path)
        try:
            self.document = Document(str(self.path))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, etree.XMLSyntaxError) as exc:
            raise DocumentStructureError(
                f"{self.path.name} is not a readable Word document: {exc}"
            ) from exc
        self._parts: Dict[str, DocumentPart] = {}
        self.main = self._wrap(self.document.part, "document")

    @classmethod
    def open_copy(cls, source: pathlib.Path, destination: pathlib.Path) -> "WordDocument":
        """Copy the source file and open the copy for editing."""

        ensure_supported(source)
        copy_document(source, destination)
        try:
            return cls(destination)
        except DocumentStructureError:
            destination.unlink(missing_ok=True)
            raise

    @property
    def body(self):
        return self.document.element.body

    @property
    def header_parts(self) -> List[DocumentPart]:
        return self.related_parts(RT.HEADER, "header")

    @property
    def footer_parts(self) -> List[DocumentPart]:
        return self.related_parts(RT.FOOTER, "footer")

    @property
    def footnotes_part(self) -> Optional[DocumentPart]:
        return self._first(self.related_parts(RT.FOOTNOTES, "footnotes"))

    @property
    def endnotes_part(self) -> Optional[DocumentPart]:
        return self._first(self.related_parts(RT.ENDNOTES, "endnotes"))

    @property
    def comments_part(self) -> Optional[DocumentPart]:
        return self._first(self.related_parts(RT.COMMENTS, "comments"))

    @property
    def diagram_data_parts(self) -> List[DocumentPart]:
        return self.related_parts(RT.DIAGRAM_DATA, "diagram")

    @property
    def hyperlink_ids(self) -> Set[str]:
        """Relationship ids of the main part's hyperlink targets."""

        return {
            r_id
            for r_id, rel in self.document.part.rels.items()
            if rel.reltype == RT.HYPERLINK
        }

    def related_parts(self, reltype: str, kind: str) -> List[DocumentPart]:
        """Parts related from the main document part by ``reltype``."""

        parts: List[DocumentPart] = []
        seen: Set[str] = set()
        for rel in self.document.part.rels.values():
            if rel.is_external or rel.reltype != reltype:
                continue
            target = rel.target_part
            partname = str(target.partname)
            if partname in seen:
                continue
            seen.add(partname)
            parts.append(self._wrap(target, kind))
        return parts

    def save(self) -> None:
        """Commit every edited part and write the package to disk."""

        for part in self._parts.values():
            part.save()
        self.document.save(str(self.path))

    def _wrap(self, part: Part, kind: str) -> DocumentPart:
        partname = str(part.partname)
        wrapped = self._parts.get(partname)
        if wrapped is None:
            wrapped = DocumentPart(part, kind)
            self._parts[partname] = wrapped
        return wrapped

    @staticmethod
    def _first(parts: List[DocumentPart]) -> Optional[DocumentPart]:
        return parts[0] if parts else None


def ensure_supported(path: pathlib.Path) -> None:
    if pathlib.Path(path).suffix.lower() != ".docx":
        raise UnsupportedFileTypeError(
            "This file type isn't supported — please use .docx."
        )


def copy_document(source: pathlib.Path, destination: pathlib.Path) -> None:
    """Duplicate the source so every edit lands in the destination only."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, destination)
