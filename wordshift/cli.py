"""Command line interface for the Wordshift translator."""

from __future__ import annotations

import argparse
import logging
import pathlib
import re
import sys
from typing import Iterable, Optional

from .configuration import WordshiftConfig, get_settings
from .errors import (
    DocumentStructureError,
    OverwriteRefusedError,
    TranslationProviderConfigurationError,
    UnsupportedFileTypeError,
    WordshiftError,
)
from .segmenter import resolve_boundary_pattern
from .translator import (
    DEFAULT_MAX_CONCURRENCY,
    TranslationRunner,
    TranslationSummary,
    validate_paths,
)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wordshift",
        description=(
            "Translate Word (.docx) documents while preserving run-level formatting."
        ),
    )
    parser.add_argument(
        "input_file",
        help="Path to the .docx file to translate.",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file path. Defaults to appending the target language or '_translated'.",
    )
    parser.add_argument(
        "-t",
        "--target-language",
        help="Destination language (required by the OpenAI providers).",
    )
    parser.add_argument(
        "-s",
        "--source-language",
        help="Optional source language hint for the OpenAI providers.",
    )
    parser.add_argument(
        "-p",
        "--provider",
        help="Translation provider: http (default), openai, azure_openai or echo.",
    )
    parser.add_argument(
        "-e",
        "--endpoint",
        help="URL of the JSON translation endpoint used by the http provider.",
    )
    parser.add_argument(
        "-m",
        "--model",
        help="Provider-specific model or deployment identifier.",
    )
    parser.add_argument(
        "-c",
        "--max-concurrency",
        type=positive_int,
        help=f"Maximum units translated at once (default: {DEFAULT_MAX_CONCURRENCY}).",
    )
    parser.add_argument(
        "--sentence-boundary",
        help="Sentence boundary preset ('default', 'extended') or a regular expression.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-request timeout in seconds for the http provider.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Allow overwriting the output file if it already exists.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    parser.add_argument(
        "--debug-provider",
        action="store_true",
        help="Log complete provider requests and responses for troubleshooting.",
    )
    return parser


def configure_logging(level_name: str, *, verbose: bool, provider_debug: bool) -> None:
    if provider_debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def sanitise_language_for_filename(language: str) -> str:
    """Generate a filesystem-friendly suffix from a language descriptor."""

    collapsed = re.sub(r"\s+", "-", language.strip())
    ascii_only = collapsed.encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^A-Za-z0-9\-]+", "", ascii_only)
    return cleaned or "translated"


def derive_output_path(input_path: pathlib.Path, language: str | None) -> pathlib.Path:
    addition = sanitise_language_for_filename(language or "translated")
    return input_path.with_name(f"{input_path.stem}_{addition}{input_path.suffix}")


def execute_translation(
    *,
    input_file: str,
    output_file: str | None,
    provider: str | None,
    endpoint: str | None = None,
    timeout: float | None = None,
    target_language: str | None = None,
    source_language: str | None = None,
    model: str | None = None,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    sentence_boundary: str | None = None,
    force_overwrite: bool = False,
    provider_debug: bool = False,
    settings: WordshiftConfig | None = None,
) -> tuple[int, TranslationSummary | None, str | None]:
    """Execute a translation run and return the exit code, summary, and message."""

    input_path = pathlib.Path(input_file).expanduser().resolve()
    output_path = (
        pathlib.Path(output_file).expanduser().resolve()
        if output_file
        else derive_output_path(input_path, target_language)
    )

    try:
        validate_paths(input_path, output_path, force_overwrite=force_overwrite)
    except FileNotFoundError as exc:
        return 1, None, str(exc)
    except OverwriteRefusedError as exc:
        return 1, None, str(exc)
    except WordshiftError as exc:
        return 1, None, str(exc)

    try:
        boundary = resolve_boundary_pattern(sentence_boundary)
    except re.error as exc:
        return 1, None, f"Invalid sentence boundary pattern: {exc}"

    runner = TranslationRunner(
        input_path=input_path,
        output_path=output_path,
        provider_name=provider,
        endpoint=endpoint,
        timeout=timeout,
        target_language=target_language,
        source_language=source_language,
        model=model,
        settings=settings,
        max_concurrency=max_concurrency,
        sentence_boundary=boundary,
        provider_debug=provider_debug,
    )

    try:
        summary = runner.run()
    except UnsupportedFileTypeError as exc:
        return 1, None, str(exc)
    except TranslationProviderConfigurationError as exc:
        return 1, None, str(exc)
    except DocumentStructureError as exc:
        return 1, None, str(exc)
    except WordshiftError as exc:
        return 1, None, str(exc)
    except KeyboardInterrupt:
        return 2, None, "Translation interrupted by user."

    return 0, summary, None


def print_summary(summary: TranslationSummary) -> None:
    """Output a friendly report once processing completes."""

    stats = summary.stats
    print("\nTranslation complete.")
    print(f"  Input file:      {summary.input_path}")
    print(f"  Output file:     {summary.output_path}")
    print(f"  Provider:        {summary.provider_name}")
    print(
        "  Text units:      "
        f"{stats.total_units} ({summary.duplicate_hits} duplicate hits merged)"
    )
    print(
        "  Sentences:       "
        f"{stats.translated_batches} translated / {stats.total_batches} total "
        f"({stats.failed_batches} failed, {stats.skipped_batches} skipped)"
    )
    if stats.diagram_nodes:
        print(
            "  Diagram text:    "
            f"{stats.translated_nodes} translated / {stats.diagram_nodes} total "
            f"({stats.failed_nodes} failed)"
        )
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")
    if summary.total_errors:
        print("  Notes:")
        for message in summary.error_messages:
            print(f"    - {message}")
    print(f"Translated document saved to: {summary.output_path}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = get_settings()
    except TranslationProviderConfigurationError as exc:
        print(exc)
        return 1

    provider_debug = bool(args.debug_provider or settings.WORDSHIFT_PROVIDER_DEBUG)
    configure_logging(
        settings.WORDSHIFT_LOG_LEVEL,
        verbose=args.verbose,
        provider_debug=provider_debug,
    )

    max_concurrency = (
        args.max_concurrency
        if args.max_concurrency is not None
        else settings.TRANSLATION_MAX_CONCURRENCY
    )

    exit_code, summary, message = execute_translation(
        input_file=args.input_file,
        output_file=args.output,
        provider=args.provider or settings.TRANSLATION_PROVIDER,
        endpoint=args.endpoint or settings.TRANSLATION_ENDPOINT,
        timeout=args.timeout if args.timeout is not None else settings.TRANSLATION_TIMEOUT,
        target_language=args.target_language,
        source_language=args.source_language,
        model=args.model,
        max_concurrency=max_concurrency,
        sentence_boundary=args.sentence_boundary or settings.SENTENCE_BOUNDARY,
        force_overwrite=args.force,
        provider_debug=provider_debug,
        settings=settings,
    )

    if message:
        print(message)
    if summary:
        print_summary(summary)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
