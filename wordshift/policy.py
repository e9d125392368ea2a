"""Error handling policy implementation."""

from __future__ import annotations

import logging
from typing import List, Optional

from .errors import ErrorCategory, ErrorRecord, TranslationError

logger = logging.getLogger(__name__)


class ErrorPolicy:
    """Collects unit-local failures; none of them stops the run."""

    def __init__(self) -> None:
        self.records: List[ErrorRecord] = []

    def handle_error(
        self,
        category: ErrorCategory,
        message: str,
        details: Optional[str] = None,
    ) -> None:
        """Record an error and emit one diagnostic line for it."""

        self.records.append(ErrorRecord(category=category, message=message, details=details))
        logger.warning(message)

    def handle_translation_failure(
        self,
        failure: TranslationError,
        location: Optional[str] = None,
    ) -> None:
        where = f" at {location}" if location else ""
        self.handle_error(
            failure.category,
            f'Translation failed for: "{failure.text}"{where} — {failure.message}',
            details=failure.text,
        )

    @property
    def messages(self) -> List[str]:
        return [record.message for record in self.records]
