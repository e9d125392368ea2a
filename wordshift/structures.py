"""Core data structures for the Wordshift translator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, List, Protocol, TypeVar


FormatT = TypeVar("FormatT")


class TextRun(Protocol):
    """A formatted text span whose text payload may be rewritten."""

    text: str

    @property
    def formatting(self) -> Any:
        """Opaque formatting descriptor carried through untouched."""


@dataclass
class Run(Generic[FormatT]):
    """In-memory run with an arbitrary formatting payload."""

    text: str
    formatting: FormatT = None  # type: ignore[assignment]


@dataclass
class TextUnit:
    """A paragraph-like node holding an ordered run sequence."""

    unit_id: str
    location: str
    runs: List[TextRun] = field(default_factory=list)


@dataclass
class SentenceBatch:
    """A contiguous slice of a unit's runs translated as one sentence."""

    unit_id: str
    order: int
    runs: List[TextRun]

    @property
    def batch_id(self) -> str:
        return f"{self.unit_id}#s{self.order}"


@dataclass
class DiagramTextNode:
    """A leaf text value inside a diagram data part."""

    node_id: str
    element: Any

    @property
    def text(self) -> str:
        return self.element.text or ""

    @text.setter
    def text(self, value: str) -> None:
        self.element.text = value
