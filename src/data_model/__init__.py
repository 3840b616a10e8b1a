"""Shared data model for the signal filter."""

from src.data_model.errors import (
    BaselineNotSetError,
    EmbeddingProviderError,
    FilterStateTransitionError,
    InputValidationError,
    ItemDefectError,
    NoveltyPersistenceError,
    SignalFilterError,
)
from src.data_model.models import Item, StrictBaseModel


__all__ = [
    "BaselineNotSetError",
    "EmbeddingProviderError",
    "FilterStateTransitionError",
    "InputValidationError",
    "Item",
    "ItemDefectError",
    "NoveltyPersistenceError",
    "SignalFilterError",
    "StrictBaseModel",
]
