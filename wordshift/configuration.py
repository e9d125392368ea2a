"""Prepper-backed configuration loader for Wordshift."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Literal, Mapping

from dotenv import dotenv_values
from prepper import (
    Field,
    IoError,
    SchemaError,
    SchemaModel,
    ValidationError,
    model_validator,
)
from prepper.loaders import _parse_file, _path_to_source, discover_file_paths
from prepper.merge import merge_layer
from prepper.provenance import ProvenanceRecorder

from .errors import TranslationProviderConfigurationError

APP_NAME = "Wordshift"

PROVIDER_SYNONYMS = {
    "rest": "http",
    "default": "http",
    "azure": "azure_openai",
    "azure_open_ai": "azure_openai",
    "azureopenai": "azure_openai",
    "noop": "echo",
    "mock": "echo",
}


def normalise_provider_name(value: str) -> str:
    normalized = value.strip().lower().replace("-", "_")
    return PROVIDER_SYNONYMS.get(normalized, normalized)


class WordshiftConfig(SchemaModel):
    """Schema describing all supported configuration options."""

    TRANSLATION_PROVIDER: Literal["http", "openai", "azure_openai", "echo"] = Field(
        default="http",
        description="Translation backend selection.",
    )
    TRANSLATION_ENDPOINT: str = Field(
        default="http://127.0.0.1:5000/translate",
        description="URL of the JSON translation endpoint.",
    )
    TRANSLATION_TIMEOUT: float = Field(
        default=60.0,
        description="Per-request timeout in seconds for the HTTP backend.",
    )
    TRANSLATION_MAX_CONCURRENCY: int = Field(
        default=8,
        description="Maximum number of units translated at the same time.",
    )
    SENTENCE_BOUNDARY: str = Field(
        default="default",
        description="Boundary preset name ('default', 'extended') or a regular expression.",
    )
    OPENAI_API_KEY: str | None = Field(default=None, secret=True)
    OPENAI_MODEL: str | None = Field(default=None)
    AZURE_OPENAI_API_KEY: str | None = Field(default=None, secret=True)
    AZURE_OPENAI_ENDPOINT: str | None = Field(default=None)
    AZURE_OPENAI_API_VERSION: str | None = Field(default=None)
    AZURE_OPENAI_DEPLOYMENT_NAME: str | None = Field(default=None)
    WORDSHIFT_LOG_LEVEL: str = Field(default="WARNING")
    WORDSHIFT_PROVIDER_DEBUG: bool = Field(default=False)

    @model_validator(mode="before")
    def _normalise_provider(data: Any) -> Any:
        if isinstance(data, dict):
            raw_value = data.get("TRANSLATION_PROVIDER")
            if isinstance(raw_value, str):
                normalized = normalise_provider_name(raw_value)
                if normalized not in {"http", "openai", "azure_openai", "echo"}:
                    normalized = "http"
                data["TRANSLATION_PROVIDER"] = normalized
        return data


@lru_cache(maxsize=1)
def get_settings(app_dir: Path | None = None) -> WordshiftConfig:
    """Load YAML files, ``.env`` and the process environment into one model.

    Later layers win. Only keys declared on :class:`WordshiftConfig` are
    taken from the environment.
    """

    base_dir = app_dir or Path.cwd()
    provenance = ProvenanceRecorder()
    combined: dict[str, Any] = {}
    try:
        for path, label in discover_file_paths(APP_NAME, "yaml", app_dir=base_dir, extra_paths=None):
            parsed = _parse_file(path, "yaml")
            if not isinstance(parsed, Mapping):
                raise IoError(
                    f"Invalid configuration file {path}: expected a mapping at the root."
                )
            source = _path_to_source(label, "yaml", path)
            merge_layer(combined, parsed, provenance=provenance, source=source, layer="file")

        merge_layer(
            combined,
            _environment_values(base_dir),
            provenance=provenance,
            source="env",
            layer="env",
        )
        settings = WordshiftConfig.validate(combined, provenance=provenance)
    except (IoError, SchemaError) as exc:
        raise TranslationProviderConfigurationError(
            f"Configuration could not be loaded: {exc}"
        ) from exc
    except ValidationError as exc:
        raise TranslationProviderConfigurationError(
            f"Configuration validation errors detected:\n{exc}"
        ) from exc

    _validate_provider_settings(settings, settings.TRANSLATION_PROVIDER)
    return settings


def _environment_values(app_dir: Path) -> dict[str, str]:
    values = {
        key: value
        for key, value in dotenv_values(app_dir / ".env").items()
        if value is not None
    }
    values.update(os.environ)
    allowed = WordshiftConfig.__field_infos__.keys()
    return {key: value for key, value in values.items() if key in allowed}


def missing_provider_settings(settings: WordshiftConfig, provider: str) -> List[str]:
    """List the setting names the given provider needs but does not have."""

    if provider == "openai":
        required = {"OPENAI_API_KEY": settings.OPENAI_API_KEY}
    elif provider == "azure_openai":
        required = {
            "AZURE_OPENAI_API_KEY": settings.AZURE_OPENAI_API_KEY,
            "AZURE_OPENAI_ENDPOINT": settings.AZURE_OPENAI_ENDPOINT,
            "AZURE_OPENAI_API_VERSION": settings.AZURE_OPENAI_API_VERSION,
            "AZURE_OPENAI_DEPLOYMENT_NAME": settings.AZURE_OPENAI_DEPLOYMENT_NAME,
        }
    else:
        return []
    return [name for name, value in required.items() if not value]


def _validate_provider_settings(settings: WordshiftConfig, provider: str) -> None:
    errors: list[str] = []

    if settings.TRANSLATION_MAX_CONCURRENCY < 1:
        errors.append("TRANSLATION_MAX_CONCURRENCY must be at least 1.")

    missing = missing_provider_settings(settings, provider)
    if missing:
        errors.append(
            "The following settings must be provided when the translation "
            f"provider is '{provider}': {', '.join(missing)}."
        )

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise TranslationProviderConfigurationError(
            "Configuration validation errors detected:\n" + bullet_list
        )
