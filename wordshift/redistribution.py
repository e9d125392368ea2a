"""Proportional redistribution of translated text over formatted runs."""

from __future__ import annotations

import re
from typing import Sequence

from .segmenter import run_lengths
from .structures import TextRun

WHITESPACE_PATTERN = re.compile(r"\s+")


def normalise_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space and trim the ends."""

    return WHITESPACE_PATTERN.sub(" ", text).strip()


def redistribute(runs: Sequence[TextRun], translated: str) -> bool:
    """Spread ``translated`` across ``runs`` in proportion to their lengths.

    Every run keeps its formatting; only its text is replaced by a
    contiguous slice of the normalised translation. A single space is
    prefixed to a slice that would otherwise fuse with the previous one.
    Runs that held no text are left alone. Returns ``False`` when nothing
    was written.
    """

    if not runs or not translated:
        return False

    lengths = run_lengths(runs)
    original_length = sum(lengths)
    if original_length == 0:
        return False

    text = normalise_whitespace(translated)
    translated_length = len(text)
    if translated_length == 0:
        return False

    last_index = max(idx for idx, length in enumerate(lengths) if length > 0)
    cursor = 0
    for idx, (run, length) in enumerate(zip(runs, lengths)):
        if length == 0:
            continue
        chunk_length = round(length / original_length * translated_length)
        chunk_length = min(chunk_length, translated_length - cursor)
        chunk = text[cursor:cursor + chunk_length]
        start = cursor
        cursor += chunk_length
        if idx == last_index and cursor < translated_length:
            chunk += text[cursor:]
            cursor = translated_length
        # An empty chunk gets no separator, so runs past the end of a short
        # translation stay empty instead of holding a lone space.
        if (
            chunk
            and start > 0
            and not text[start - 1].isspace()
            and not chunk[0].isspace()
        ):
            chunk = " " + chunk
        run.text = chunk
    return True
