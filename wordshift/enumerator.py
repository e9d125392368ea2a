"""Discovery of every translatable unit in a Word document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from docx.oxml.ns import qn

from .documents import DocumentPart, WordDocument, paragraph_runs
from .structures import DiagramTextNode, TextUnit

logger = logging.getLogger(__name__)

W_P = qn("w:p")
W_SDT = qn("w:sdt")
W_SDT_PR = qn("w:sdtPr")
W_TAG = qn("w:tag")
W_VAL = qn("w:val")
W_DRAWING = qn("w:drawing")
W_PICT = qn("w:pict")
W_FLD_SIMPLE = qn("w:fldSimple")
W_HYPERLINK = qn("w:hyperlink")
W_BOOKMARK_START = qn("w:bookmarkStart")
W_FOOTNOTE = qn("w:footnote")
W_ENDNOTE = qn("w:endnote")
W_COMMENT = qn("w:comment")
R_ID = qn("r:id")
A_T = qn("a:t")

TEXTBOX_TAG = "TextBox"

Hit = Tuple[DocumentPart, object]
Source = Callable[[], Iterable[Hit]]


@dataclass
class DiagramPartNodes:
    """The translatable text nodes of one diagram data part."""

    part: DocumentPart
    nodes: List[DiagramTextNode] = field(default_factory=list)


@dataclass
class Discovery:
    """Result of a full enumeration pass."""

    units: List[TextUnit]
    diagrams: List[DiagramPartNodes]
    source_counts: Dict[str, int]
    duplicates: int

    @property
    def diagram_node_count(self) -> int:
        return sum(len(entry.nodes) for entry in self.diagrams)


def _paragraphs_below(part: DocumentPart, elements: Iterable) -> Iterator[Hit]:
    for element in elements:
        for paragraph in element.iterdescendants(W_P):
            yield part, paragraph


def _has_ancestor(element, tags: Tuple[str, ...]) -> bool:
    parent = element.getparent()
    while parent is not None:
        if parent.tag in tags:
            return True
        parent = parent.getparent()
    return False


def _sdt_tag(sdt) -> str:
    properties = sdt.find(W_SDT_PR)
    if properties is None:
        return ""
    tag = properties.find(W_TAG)
    if tag is None:
        return ""
    return tag.get(W_VAL) or ""


class UnitEnumerator:
    """Walks a document and yields each paragraph-like unit exactly once.

    Several discovery sources overlap on purpose (a text-box content
    control is also a content control, and every body paragraph is found
    by the body scan). Hits are keyed by part name and tree path and
    merged before any work is dispatched.
    """

    def __init__(self, document: WordDocument) -> None:
        self.document = document

    def sources(self) -> List[Tuple[str, Source]]:
        return [
            ("body", self._body_paragraphs),
            ("header", lambda: self._part_paragraphs(self.document.header_parts)),
            ("footer", lambda: self._part_paragraphs(self.document.footer_parts)),
            ("footnote", lambda: self._note_paragraphs(self.document.footnotes_part, W_FOOTNOTE)),
            ("endnote", lambda: self._note_paragraphs(self.document.endnotes_part, W_ENDNOTE)),
            ("comment", lambda: self._note_paragraphs(self.document.comments_part, W_COMMENT)),
            ("textbox", self._textbox_paragraphs),
            ("shape", self._shape_paragraphs),
            ("field", self._field_paragraphs),
            ("hyperlink", self._hyperlink_paragraphs),
            ("bookmark", self._bookmark_paragraphs),
            ("content_control", self._content_control_paragraphs),
        ]

    def discover(self) -> Discovery:
        units: List[TextUnit] = []
        seen: Dict[Tuple[str, str], TextUnit] = {}
        counts: Dict[str, int] = {}
        duplicates = 0

        for name, source in self.sources():
            counts[name] = 0
            for part, paragraph in source():
                counts[name] += 1
                key = (part.partname, part.path_of(paragraph))
                if key in seen:
                    duplicates += 1
                    continue
                runs = paragraph_runs(paragraph)
                unit = TextUnit(
                    unit_id=f"{key[0]}:{key[1]}",
                    location=f"{part.kind} paragraph {key[1]}",
                    runs=list(runs),
                )
                seen[key] = unit
                if runs:
                    units.append(unit)

        for name, count in counts.items():
            logger.debug("Discovery source %s matched %d paragraphs", name, count)
        logger.debug("Removed %d duplicate paragraph hits", duplicates)

        return Discovery(
            units=units,
            diagrams=self.diagram_nodes(),
            source_counts=counts,
            duplicates=duplicates,
        )

    def diagram_nodes(self) -> List[DiagramPartNodes]:
        """Collect non-blank ``a:t`` leaves of every diagram data part."""

        result: List[DiagramPartNodes] = []
        for part in self.document.diagram_data_parts:
            entry = DiagramPartNodes(part=part)
            for idx, node in enumerate(part.element.iter(A_T)):
                if not (node.text or "").strip():
                    continue
                entry.nodes.append(
                    DiagramTextNode(node_id=f"{part.partname}#t{idx}", element=node)
                )
            if entry.nodes:
                result.append(entry)
        return result

    # --- Discovery sources ------------------------------------------------

    def _body_paragraphs(self) -> Iterator[Hit]:
        main = self.document.main
        for paragraph in self.document.body.iter(W_P):
            yield main, paragraph

    def _part_paragraphs(self, parts: List[DocumentPart]) -> Iterator[Hit]:
        for part in parts:
            for paragraph in part.element.iter(W_P):
                yield part, paragraph

    def _note_paragraphs(self, part: Optional[DocumentPart], container_tag: str) -> Iterator[Hit]:
        if part is None:
            return
        yield from _paragraphs_below(part, part.element.iter(container_tag))

    def _textbox_paragraphs(self) -> Iterator[Hit]:
        blocks = (
            sdt for sdt in self.document.body.iter(W_SDT)
            if TEXTBOX_TAG in _sdt_tag(sdt)
        )
        yield from _paragraphs_below(self.document.main, blocks)

    def _shape_paragraphs(self) -> Iterator[Hit]:
        main = self.document.main
        for paragraph in self.document.body.iter(W_P):
            if _has_ancestor(paragraph, (W_DRAWING, W_PICT)):
                yield main, paragraph

    def _field_paragraphs(self) -> Iterator[Hit]:
        yield from _paragraphs_below(
            self.document.main, self.document.body.iter(W_FLD_SIMPLE)
        )

    def _hyperlink_paragraphs(self) -> Iterator[Hit]:
        targets = self.document.hyperlink_ids
        if not targets:
            return
        links = (
            link for link in self.document.body.iter(W_HYPERLINK)
            if link.get(R_ID) in targets
        )
        yield from _paragraphs_below(self.document.main, links)

    def _bookmark_paragraphs(self) -> Iterator[Hit]:
        parents = []
        for bookmark in self.document.body.iter(W_BOOKMARK_START):
            parent = bookmark.getparent()
            if parent is not None and not any(parent is known for known in parents):
                parents.append(parent)
        yield from _paragraphs_below(self.document.main, parents)

    def _content_control_paragraphs(self) -> Iterator[Hit]:
        yield from _paragraphs_below(
            self.document.main, self.document.body.iter(W_SDT)
        )
