"""Filter settings powered by Pydantic BaseSettings."""

from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.novelty.constants import (
    DEFAULT_HALF_LIFE_DAYS,
    DEFAULT_KV_KEY,
    MIN_NOVELTY_SCORE,
)
from src.pipeline.models import DEFAULT_NOVELTY_THRESHOLD, DEFAULT_RELEVANCE_THRESHOLD
from src.similarity.constants import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_MODEL_NAME,
)


NoveltyBackend = Literal["memory", "file", "kv"]


class FilterSettings(BaseSettings):
    """Centralized environment configuration.

    Every field can be set with a ``SIGNAL_`` prefixed variable, e.g.
    ``SIGNAL_RELEVANCE_THRESHOLD=0.4`` or ``SIGNAL_NOVELTY_BACKEND=file``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SIGNAL_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    relevance_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = (
        DEFAULT_RELEVANCE_THRESHOLD
    )
    novelty_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = (
        DEFAULT_NOVELTY_THRESHOLD
    )
    concurrency: Annotated[int, Field(ge=1)] = DEFAULT_CONCURRENCY
    cache_size: Annotated[int, Field(ge=1)] = DEFAULT_CACHE_SIZE
    embed_timeout_s: Annotated[float, Field(gt=0)] | None = None
    verbose: bool = False

    model_name: str = DEFAULT_MODEL_NAME

    novelty_backend: NoveltyBackend = "memory"
    novelty_path: Path | None = None
    novelty_kv_key: str = DEFAULT_KV_KEY
    novelty_max_entries: Annotated[int, Field(ge=1)] | None = None
    novelty_half_life_days: Annotated[float, Field(gt=0)] = DEFAULT_HALF_LIFE_DAYS
    novelty_min_score: Annotated[float, Field(ge=0.0, le=1.0)] = MIN_NOVELTY_SCORE

    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"


def get_settings() -> FilterSettings:
    """Get a settings instance."""
    return FilterSettings()
