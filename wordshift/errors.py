"""Error definitions for the Wordshift translator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises runtime errors for reporting."""

    TRANSLATION = auto()
    NETWORK = auto()


class WordshiftError(Exception):
    """Base exception for all custom errors."""


class UnsupportedFileTypeError(WordshiftError):
    """Raised when a given file extension is not supported."""


class OverwriteRefusedError(WordshiftError):
    """Raised when attempting to overwrite an output without consent."""


class DocumentStructureError(WordshiftError):
    """Raised when a document part cannot be read as XML."""


class TranslationProviderConfigurationError(WordshiftError):
    """Raised when the translation provider is misconfigured."""


class TranslationProviderError(WordshiftError):
    """Raised by providers when a single translation call fails."""

    def __init__(self, message: str, *, category: ErrorCategory = ErrorCategory.TRANSLATION):
        super().__init__(message)
        self.category = category


@dataclass(frozen=True)
class TranslationError:
    """Failure value returned by the translation client instead of raising."""

    message: str
    text: str
    category: ErrorCategory = ErrorCategory.TRANSLATION

    def __str__(self) -> str:
        return self.message


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None
