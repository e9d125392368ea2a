"""Translation provider abstractions and the failure-safe client."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Union

import httpx

from .errors import (
    ErrorCategory,
    TranslationError,
    TranslationProviderConfigurationError,
    TranslationProviderError,
)

if TYPE_CHECKING:  # pragma: no cover
    from .configuration import WordshiftConfig

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://127.0.0.1:5000/translate"
DEFAULT_TIMEOUT = 60.0


class TranslationProvider(ABC):
    """Abstract adapter for translation backends."""

    name = "abstract"

    @abstractmethod
    async def translate(self, text: str) -> str:
        """Translate one text unit or raise ``TranslationProviderError``."""

    async def aclose(self) -> None:
        """Release network resources held by the provider."""


class EchoTranslationProvider(TranslationProvider):
    """A provider that returns the original text (useful for dry runs)."""

    name = "echo"

    async def translate(self, text: str) -> str:
        return text


class HttpTranslationProvider(TranslationProvider):
    """Posts ``{"text": ...}`` and reads ``{"translated": ...}`` back."""

    name = "http"

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
        debug: bool = False,
    ) -> None:
        self.endpoint = endpoint
        self.debug = debug
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def translate(self, text: str) -> str:
        payload = {"text": text}
        self._log_debug("provider.request.payload", payload)
        try:
            response = await self._client.post(self.endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise TranslationProviderError(
                f"Translation service unreachable — {exc}",
                category=ErrorCategory.NETWORK,
            ) from exc

        if not response.is_success:
            raise TranslationProviderError(
                f"Translation service returned HTTP {response.status_code}",
                category=ErrorCategory.NETWORK,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise TranslationProviderError(
                f"Translation service returned invalid JSON: {exc}"
            ) from exc
        self._log_debug("provider.response.body", body)

        translated = body.get("translated") if isinstance(body, dict) else None
        if not isinstance(translated, str):
            raise TranslationProviderError(
                "Translation service response malformed: missing 'translated' field."
            )
        return translated

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _log_debug(self, label: str, payload: Any) -> None:
        if self.debug:
            logger.debug("%s: %s", label, json.dumps(payload, ensure_ascii=False))


class OpenAITranslationProvider(TranslationProvider):
    """Translation provider that uses OpenAI chat models."""

    name = "openai"
    DEFAULT_MODEL = "gpt-5-mini"

    SYSTEM_PROMPT = (
        "You are a professional translator. Translate the user's text into the "
        "requested language. Preserve numbers, placeholders and punctuation. "
        'Respond strictly with a JSON object shaped as {"translated": "..."}. '
        "Do not add commentary. Do not wrap the JSON in markdown code fences."
    )

    def __init__(
        self,
        client: Any,
        *,
        model: str,
        target_language: str,
        source_language: Optional[str] = None,
        debug: bool = False,
    ) -> None:
        self._client = client
        self.model = model
        self.target_language = target_language
        self.source_language = source_language
        self.debug = debug

    @classmethod
    def from_settings(
        cls,
        settings: "WordshiftConfig",
        *,
        azure: bool,
        target_language: str,
        source_language: Optional[str] = None,
        model: Optional[str] = None,
        debug: bool = False,
    ) -> "OpenAITranslationProvider":
        try:
            from openai import AsyncAzureOpenAI, AsyncOpenAI
        except ImportError as exc:  # pragma: no cover - import guard
            raise TranslationProviderConfigurationError(
                "OpenAI Python SDK not installed. Install with `pip install openai`."
            ) from exc

        if azure:
            client = AsyncAzureOpenAI(
                api_key=settings.AZURE_OPENAI_API_KEY,
                api_version=settings.AZURE_OPENAI_API_VERSION,
                azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
            )
            chosen_model = model or settings.AZURE_OPENAI_DEPLOYMENT_NAME
        else:
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
            chosen_model = model or settings.OPENAI_MODEL or cls.DEFAULT_MODEL

        provider = cls(
            client,
            model=chosen_model,  # type: ignore[arg-type]
            target_language=target_language,
            source_language=source_language,
            debug=debug,
        )
        provider.name = "azure_openai" if azure else "openai"
        return provider

    async def translate(self, text: str) -> str:
        user_payload = {
            "target_language": self.target_language,
            "source_language": self.source_language,
            "text": text,
        }
        self._log_debug("provider.request.payload", user_payload)
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": json.dumps(user_payload, ensure_ascii=False),
                    },
                ],
            )
        except Exception as exc:  # pragma: no cover - network call
            raise TranslationProviderError(
                f"Translation service temporarily unavailable — {exc}",
                category=ErrorCategory.NETWORK,
            ) from exc

        content: Optional[str] = None
        for choice in getattr(response, "choices", None) or []:
            message = getattr(choice, "message", None)
            message_content = getattr(message, "content", None)
            if message_content:
                content = str(message_content)
                break
        if content is None:
            raise TranslationProviderError(
                "Translation provider response empty or unrecognised."
            )
        self._log_debug("provider.response.content", content)
        return self._parse_translation(content)

    async def aclose(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()

    def _parse_translation(self, content: str) -> str:
        try:
            payload = json.loads(_strip_code_fence(content))
        except json.JSONDecodeError as exc:
            raise TranslationProviderError(
                f"Translation provider returned invalid JSON: {exc}"
            ) from exc
        translated = payload.get("translated") if isinstance(payload, dict) else None
        if not isinstance(translated, str):
            raise TranslationProviderError(
                "Translation provider response malformed: missing 'translated' field."
            )
        return translated

    def _log_debug(self, label: str, payload: Any) -> None:
        if not self.debug:
            return
        if isinstance(payload, (dict, list)):
            payload = json.dumps(payload, ensure_ascii=False)
        logger.debug("%s: %s", label, payload)


def _strip_code_fence(text: str) -> str:
    """Remove leading/trailing markdown code fences if present."""

    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped

    # Drop opening fence and optional language hint.
    first_newline = stripped.find("\n")
    if first_newline == -1:
        return stripped
    body = stripped[first_newline + 1 :]
    closing_index = body.rfind("```")
    if closing_index != -1:
        body = body[:closing_index]
    return body.strip()


class TranslationClient:
    """Single-request translation boundary that never raises.

    Each call is one independent provider request. Failures come back as
    ``TranslationError`` values so the caller can leave the text untouched.
    """

    def __init__(self, provider: TranslationProvider) -> None:
        self.provider = provider

    async def translate(self, text: str) -> Union[str, TranslationError]:
        try:
            return await self.provider.translate(text)
        except TranslationProviderError as exc:
            return TranslationError(message=str(exc), text=text, category=exc.category)

    async def aclose(self) -> None:
        await self.provider.aclose()

    async def __aenter__(self) -> "TranslationClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def build_provider(
    name: Optional[str],
    *,
    settings: Optional["WordshiftConfig"] = None,
    endpoint: Optional[str] = None,
    timeout: Optional[float] = None,
    target_language: Optional[str] = None,
    source_language: Optional[str] = None,
    model: Optional[str] = None,
    debug: bool = False,
) -> TranslationProvider:
    """Factory to create providers by name."""

    normalized = (name or "http").strip().lower().replace("-", "_")
    if normalized in {"http", "rest", "default"}:
        return HttpTranslationProvider(
            endpoint or (settings.TRANSLATION_ENDPOINT if settings else DEFAULT_ENDPOINT),
            timeout=timeout if timeout is not None else (
                settings.TRANSLATION_TIMEOUT if settings else DEFAULT_TIMEOUT
            ),
            debug=debug,
        )
    if normalized in {"echo", "noop", "mock"}:
        return EchoTranslationProvider()
    if normalized in {"openai", "gpt", "azure_openai", "azure"}:
        azure = normalized in {"azure_openai", "azure"}
        if settings is None:
            raise TranslationProviderConfigurationError(
                "OpenAI providers require configuration settings."
            )
        from .configuration import missing_provider_settings

        missing = missing_provider_settings(settings, "azure_openai" if azure else "openai")
        if missing:
            raise TranslationProviderConfigurationError(
                "OpenAI configuration incomplete. Please set: " + ", ".join(missing) + "."
            )
        if not target_language:
            raise TranslationProviderConfigurationError(
                "A target language is required for the OpenAI providers."
            )
        return OpenAITranslationProvider.from_settings(
            settings,
            azure=azure,
            target_language=target_language,
            source_language=source_language,
            model=model,
            debug=debug,
        )
    raise TranslationProviderConfigurationError(
        f"Unknown translation provider '{name}'."
    )
