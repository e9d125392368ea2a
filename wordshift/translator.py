"""High-level orchestration for document translation."""

from __future__ import annotations

import asyncio
import logging
import pathlib
import time
from dataclasses import dataclass, field
from typing import Awaitable, List, Optional, Pattern, Union

from .documents import WordDocument
from .enumerator import DiagramPartNodes, UnitEnumerator
from .errors import (
    ErrorCategory,
    OverwriteRefusedError,
    TranslationError,
    WordshiftError,
)
from .policy import ErrorPolicy
from .providers import TranslationClient, TranslationProvider, build_provider
from .redistribution import redistribute
from .segmenter import Segmenter, extract_text
from .structures import SentenceBatch, TextUnit

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


@dataclass
class TranslationStats:
    """Counters gathered while units and diagram nodes are processed."""

    total_units: int = 0
    total_batches: int = 0
    translated_batches: int = 0
    failed_batches: int = 0
    skipped_batches: int = 0
    diagram_nodes: int = 0
    translated_nodes: int = 0
    failed_nodes: int = 0
    diagram_parts_saved: int = 0


@dataclass
class TranslationSummary:
    """Report returned after processing a document."""

    input_path: pathlib.Path
    output_path: pathlib.Path
    provider_name: str
    stats: TranslationStats
    duplicate_hits: int
    elapsed_seconds: float
    error_messages: List[str] = field(default_factory=list)

    @property
    def total_errors(self) -> int:
        return len(self.error_messages)


def _is_usable(result: Union[str, TranslationError]) -> bool:
    return isinstance(result, str) and bool(result.strip())


class DocumentTranslator:
    """Translates discovered units and diagram nodes in place.

    Batches of one unit are translated and applied strictly in order.
    Units never share runs, so unit tasks run concurrently without locks;
    the semaphore only bounds how many are in flight.
    """

    def __init__(
        self,
        client: TranslationClient,
        *,
        segmenter: Optional[Segmenter] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        error_policy: Optional[ErrorPolicy] = None,
    ) -> None:
        self.client = client
        self.segmenter = segmenter or Segmenter()
        self.max_concurrency = max(1, max_concurrency)
        self.error_policy = error_policy or ErrorPolicy()
        self.stats = TranslationStats()

    async def translate_all(
        self,
        units: List[TextUnit],
        diagrams: Optional[List[DiagramPartNodes]] = None,
    ) -> TranslationStats:
        """Run every unit and diagram part, returning once all have finished."""

        diagrams = diagrams or []
        self.stats.total_units += len(units)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def limited(job: Awaitable[None]) -> None:
            async with semaphore:
                await job

        jobs = [limited(self.translate_unit(unit)) for unit in units]
        jobs.extend(self.translate_diagram_part(entry, semaphore) for entry in diagrams)
        await asyncio.gather(*jobs)
        return self.stats

    async def translate_unit(self, unit: TextUnit) -> None:
        if not unit.runs:
            return
        for batch in self.segmenter.segment_unit(unit):
            await self.translate_batch(batch, location=unit.location)

    async def translate_batch(
        self,
        batch: SentenceBatch,
        location: Optional[str] = None,
    ) -> bool:
        self.stats.total_batches += 1
        original = extract_text(batch.runs)
        if not original.strip():
            self.stats.skipped_batches += 1
            return False

        result = await self.client.translate(original)
        if not _is_usable(result):
            self._record_failure(result, original, location or batch.batch_id)
            self.stats.failed_batches += 1
            return False

        if redistribute(batch.runs, result):  # type: ignore[arg-type]
            self.stats.translated_batches += 1
            return True
        self.stats.skipped_batches += 1
        return False

    async def translate_diagram_part(
        self,
        entry: DiagramPartNodes,
        semaphore: Optional[asyncio.Semaphore] = None,
    ) -> None:
        """Translate all nodes of one diagram part, then save the part once."""

        semaphore = semaphore or asyncio.Semaphore(self.max_concurrency)
        self.stats.diagram_nodes += len(entry.nodes)

        async def translate_node(node) -> bool:
            original = node.text
            if not original.strip():
                return False
            async with semaphore:
                result = await self.client.translate(original)
            if not _is_usable(result):
                self._record_failure(result, original, node.node_id)
                self.stats.failed_nodes += 1
                return False
            node.text = result
            self.stats.translated_nodes += 1
            return True

        outcomes = await asyncio.gather(*(translate_node(node) for node in entry.nodes))
        if any(outcomes):
            entry.part.save()
            self.stats.diagram_parts_saved += 1

    def _record_failure(
        self,
        result: Union[str, TranslationError],
        original: str,
        location: str,
    ) -> None:
        if isinstance(result, TranslationError):
            self.error_policy.handle_translation_failure(result, location)
        else:
            self.error_policy.handle_error(
                ErrorCategory.TRANSLATION,
                f'Translation failed for: "{original}" at {location} — empty translation returned',
                details=original,
            )


class TranslationRunner:
    """Coordinates copy, discovery, translation and the final save."""

    def __init__(
        self,
        *,
        input_path: pathlib.Path,
        output_path: pathlib.Path,
        provider: Optional[TranslationProvider] = None,
        provider_name: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        target_language: Optional[str] = None,
        source_language: Optional[str] = None,
        model: Optional[str] = None,
        settings=None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        sentence_boundary: Union[str, Pattern[str], None] = None,
        provider_debug: bool = False,
    ) -> None:
        self.input_path = input_path
        self.output_path = output_path
        self.provider = provider
        self.provider_name = provider_name
        self.endpoint = endpoint
        self.timeout = timeout
        self.target_language = target_language
        self.source_language = source_language
        self.model = model
        self.settings = settings
        self.max_concurrency = max_concurrency
        self.sentence_boundary = sentence_boundary
        self.provider_debug = provider_debug

        self.error_policy = ErrorPolicy()

    def run(self) -> TranslationSummary:
        return asyncio.run(self.run_async())

    async def run_async(self) -> TranslationSummary:
        start_time = time.time()

        provider = self.provider or build_provider(
            self.provider_name,
            settings=self.settings,
            endpoint=self.endpoint,
            timeout=self.timeout,
            target_language=self.target_language,
            source_language=self.source_language,
            model=self.model,
            debug=self.provider_debug,
        )

        async with TranslationClient(provider) as client:
            document = WordDocument.open_copy(self.input_path, self.output_path)
            discovery = UnitEnumerator(document).discover()
            logger.info(
                "Discovered %d units and %d diagram text nodes (%d duplicate hits removed).",
                len(discovery.units),
                discovery.diagram_node_count,
                discovery.duplicates,
            )

            translator = DocumentTranslator(
                client,
                segmenter=Segmenter(self.sentence_boundary),
                max_concurrency=self.max_concurrency,
                error_policy=self.error_policy,
            )
            stats = await translator.translate_all(discovery.units, discovery.diagrams)

        document.save()

        return TranslationSummary(
            input_path=self.input_path,
            output_path=self.output_path,
            provider_name=provider.name,
            stats=stats,
            duplicate_hits=discovery.duplicates,
            elapsed_seconds=time.time() - start_time,
            error_messages=self.error_policy.messages,
        )


def validate_paths(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    force_overwrite: bool,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_path.exists():
        raise FileNotFoundError(
            "Input file not found. Please provide a readable .docx file."
        )
    if not input_path.is_file():
        raise WordshiftError("Input path must be a file.")

    if input_path.resolve() == output_path.resolve():
        raise OverwriteRefusedError(
            "The output path matches the input document. Refusing to overwrite the source file."
        )

    if output_path.exists() and not force_overwrite:
        raise OverwriteRefusedError(
            "The output file already exists — rename or use the overwrite flag."
        )
