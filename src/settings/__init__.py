"""Environment settings and configuration loading."""

from .app import FilterSettings, get_settings
from .loader import (
    ConfigValidationError,
    build_novelty_storage,
    build_novelty_store,
    build_similarity_engine,
    configure_logging_from_settings,
    load_filter_options,
)


__all__ = [
    "ConfigValidationError",
    "FilterSettings",
    "build_novelty_storage",
    "build_novelty_store",
    "build_similarity_engine",
    "configure_logging_from_settings",
    "get_settings",
    "load_filter_options",
]
