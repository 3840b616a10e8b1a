"""Decay-based novelty tracking with pluggable persistence."""

from src.novelty.models import NoveltyRecord, NoveltyStats
from src.novelty.storage import (
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
    NoveltyStorage,
    evict_oldest,
)
from src.novelty.store import NoveltyStore


__all__ = [
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "NoveltyRecord",
    "NoveltyStats",
    "NoveltyStorage",
    "NoveltyStore",
    "evict_oldest",
]
