"""Loading of filter options and novelty stores from configuration."""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from src.novelty.constants import (
    DEFAULT_FILE_MAX_ENTRIES,
    DEFAULT_KV_MAX_ENTRIES,
)
from src.novelty.storage import (
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
    NoveltyStorage,
)
from src.novelty.store import NoveltyStore
from src.observability.logging import configure_logging
from src.pipeline.models import FilterOptions
from src.settings.app import FilterSettings
from src.similarity.engine import SimilarityEngine
from src.similarity.provider import EmbeddingProvider, default_provider


logger = structlog.get_logger()

DEFAULT_NOVELTY_FILE = Path("data/novelty.json")
DEFAULT_NOVELTY_DB = Path("data/novelty.sqlite")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


def _validation_errors(error: ValidationError) -> list[dict[str, str]]:
    return [
        {
            "loc": ".".join(str(loc) for loc in err["loc"]),
            "msg": err["msg"],
            "type": err["type"],
        }
        for err in error.errors()
    ]


def load_filter_options(
    path: Path | str, settings: FilterSettings | None = None
) -> FilterOptions:
    """Load run options from a YAML file over settings-derived defaults.

    Args:
        path: YAML file with FilterOptions fields at the top level.
        settings: Environment settings (default: loaded from environment).

    Returns:
        Validated FilterOptions.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed or invalid.
    """
    file_path = Path(path)
    settings = settings or FilterSettings()
    log = logger.bind(component="config", file_path=str(file_path))

    try:
        parsed: Any = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        errors = [{"loc": "yaml", "msg": str(e), "type": "yaml_parse_error"}]
        log.error("config_yaml_parse_error", error=str(e))
        raise ConfigValidationError(errors, str(file_path)) from e

    if not isinstance(parsed, dict) or not all(isinstance(k, str) for k in parsed):
        errors = [
            {
                "loc": "root",
                "msg": "expected a mapping with string keys",
                "type": "mapping_type",
            }
        ]
        log.error("config_validation_failed", errors=errors)
        raise ConfigValidationError(errors, str(file_path))

    try:
        options = FilterOptions.from_settings(settings, **parsed)
    except ValidationError as e:
        errors = _validation_errors(e)
        log.error(
            "config_validation_failed",
            validation_error_count=len(errors),
            errors=errors,
        )
        raise ConfigValidationError(errors, str(file_path)) from e

    log.info("config_loaded", fields=sorted(parsed))
    return options


def build_novelty_storage(settings: FilterSettings) -> NoveltyStorage:
    """Construct the configured novelty backend.

    Args:
        settings: Environment settings.

    Returns:
        Memory, JSON file or key/value storage.
    """
    if settings.novelty_backend == "file":
        return JsonFileStorage(
            settings.novelty_path or DEFAULT_NOVELTY_FILE,
            max_entries=settings.novelty_max_entries or DEFAULT_FILE_MAX_ENTRIES,
        )
    if settings.novelty_backend == "kv":
        return KeyValueStorage(
            settings.novelty_path or DEFAULT_NOVELTY_DB,
            key=settings.novelty_kv_key,
            max_entries=settings.novelty_max_entries or DEFAULT_KV_MAX_ENTRIES,
        )
    return MemoryStorage()


def build_novelty_store(settings: FilterSettings) -> NoveltyStore:
    """Construct a novelty store over the configured backend.

    Args:
        settings: Environment settings.

    Returns:
        NoveltyStore with the configured half-life and floor.
    """
    return NoveltyStore(
        build_novelty_storage(settings),
        half_life_days=settings.novelty_half_life_days,
        min_score=settings.novelty_min_score,
    )


def build_similarity_engine(
    settings: FilterSettings, provider: EmbeddingProvider | None = None
) -> SimilarityEngine:
    """Construct a long-lived similarity engine from settings.

    Args:
        settings: Environment settings.
        provider: Embedding provider (default: shared fastembed handle
            for the configured model).

    Returns:
        Engine with the configured cache size.
    """
    return SimilarityEngine(
        provider or default_provider(settings.model_name),
        cache_size=settings.cache_size,
    )


def configure_logging_from_settings(settings: FilterSettings) -> None:
    """Configure structured logging from the log level and format settings.

    Args:
        settings: Environment settings.
    """
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format == "json",
    )
