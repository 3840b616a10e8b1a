"""Unit tests for environment settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.settings.app import FilterSettings, get_settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run without a stray .env file or SIGNAL_ variables."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "SIGNAL_RELEVANCE_THRESHOLD",
        "SIGNAL_NOVELTY_BACKEND",
        "SIGNAL_CONCURRENCY",
        "SIGNAL_VERBOSE",
    ):
        monkeypatch.delenv(name, raising=False)


class TestFilterSettings:
    """Tests for FilterSettings."""

    def test_defaults(self) -> None:
        """Defaults apply with an empty environment."""
        settings = FilterSettings()

        assert settings.relevance_threshold == 0.30
        assert settings.novelty_threshold == 0.5
        assert settings.novelty_backend == "memory"
        assert settings.novelty_half_life_days == 1.0
        assert settings.novelty_min_score == 0.1
        assert settings.log_level == "INFO"

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """SIGNAL_ variables override defaults."""
        monkeypatch.setenv("SIGNAL_RELEVANCE_THRESHOLD", "0.45")
        monkeypatch.setenv("SIGNAL_NOVELTY_BACKEND", "file")
        monkeypatch.setenv("SIGNAL_VERBOSE", "true")

        settings = get_settings()

        assert settings.relevance_threshold == 0.45
        assert settings.novelty_backend == "file"
        assert settings.verbose is True

    def test_dotenv_file(self, tmp_path: Path) -> None:
        """A .env file in the working directory is read."""
        (tmp_path / ".env").write_text("SIGNAL_CONCURRENCY=3\n", encoding="utf-8")

        assert FilterSettings().concurrency == 3

    def test_invalid_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Out-of-range values are rejected."""
        monkeypatch.setenv("SIGNAL_NOVELTY_BACKEND", "redis")

        with pytest.raises(ValidationError):
            FilterSettings()

        with pytest.raises(ValidationError):
            FilterSettings(relevance_threshold=1.2)
