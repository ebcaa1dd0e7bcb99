"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from smartattend.config.settings import get_settings


@pytest.fixture(autouse=True)
def _clear_cache() -> None:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for key in ("MATCH_THRESHOLD", "RECOGNITION_INTERVAL", "INTERNAL_TOKEN", "ENVIRONMENT"):
        monkeypatch.delenv(key, raising=False)

    settings = get_settings()

    assert settings.match_threshold == 0.5
    assert settings.recognition_interval == 1.0
    assert settings.internal_token == ""
    assert settings.environment == "dev"


def test_env_file_fills_missing_keys_only(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    # Registered first so teardown removes the value the .env loader writes.
    monkeypatch.setenv("INTERNAL_TOKEN", "")
    monkeypatch.delenv("INTERNAL_TOKEN")
    monkeypatch.setenv("MATCH_THRESHOLD", "0.65")
    (tmp_path / ".env").write_text(
        "# local overrides\nINTERNAL_TOKEN=from-file\nMATCH_THRESHOLD=0.9\n",
        encoding="utf-8",
    )

    settings = get_settings()

    assert settings.internal_token == "from-file"
    assert settings.match_threshold == 0.65
