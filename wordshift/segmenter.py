"""Text extraction and sentence segmentation of run sequences."""

from __future__ import annotations

import re
from typing import Dict, List, Pattern, Sequence, Union

from .structures import SentenceBatch, TextRun, TextUnit

DEFAULT_BOUNDARY = r"(?<=[.!?])\s+|(?<=\n)"
EXTENDED_BOUNDARY = r"(?<=[.!?…‽])\s+|(?<=[。！？])|(?<=\n)"

BOUNDARY_PRESETS: Dict[str, str] = {
    "default": DEFAULT_BOUNDARY,
    "extended": EXTENDED_BOUNDARY,
}


def resolve_boundary_pattern(value: Union[str, Pattern[str], None]) -> Pattern[str]:
    """Turn a preset name, a raw regular expression or a pattern into a pattern."""

    if value is None:
        return re.compile(DEFAULT_BOUNDARY)
    if isinstance(value, re.Pattern):
        return value
    preset = BOUNDARY_PRESETS.get(value.strip().lower())
    if preset is not None:
        return re.compile(preset)
    return re.compile(value)


def run_lengths(runs: Sequence[TextRun]) -> List[int]:
    """Return the original text length of every run."""

    return [len(run.text or "") for run in runs]


def extract_text(runs: Sequence[TextRun]) -> str:
    """Concatenate the plain text of a run sequence."""

    return "".join(run.text or "" for run in runs)


class Segmenter:
    """Groups a unit's runs into sentence batches.

    A batch is closed right after any run whose own text contains a
    boundary match. Boundaries spanning two runs are not detected, and a
    run holding several sentence endings still closes only one batch.
    """

    def __init__(self, boundary: Union[str, Pattern[str], None] = None) -> None:
        self.pattern = resolve_boundary_pattern(boundary)

    def segment_runs(self, runs: Sequence[TextRun]) -> List[List[TextRun]]:
        groups: List[List[TextRun]] = []
        current: List[TextRun] = []
        for run in runs:
            current.append(run)
            text = run.text or ""
            if text and self.pattern.search(text):
                groups.append(current)
                current = []
        if current:
            groups.append(current)
        return groups

    def segment_unit(self, unit: TextUnit) -> List[SentenceBatch]:
        return [
            SentenceBatch(unit_id=unit.unit_id, order=idx, runs=group)
            for idx, group in enumerate(self.segment_runs(unit.runs))
        ]
