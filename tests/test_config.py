from pathlib import Path

import pytest
from pydantic import ValidationError

from tweaker_recipes.app.core.config import Settings, get_settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.segment_output_dir == Path("segments")
    assert settings.segment_prefix == "segments"
    assert settings.segment_include_raw is True
    assert settings.dispatch_concurrency == 1
    assert settings.dispatch_timeout_seconds is None
    assert settings.unsupported_format_policy == "surface"
    assert settings.stats_max_unhandled == 5


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TWEAKER_SEGMENT_INCLUDE_RAW", "false")
    monkeypatch.setenv("TWEAKER_DISPATCH_CONCURRENCY", "8")
    monkeypatch.setenv("TWEAKER_UNSUPPORTED_FORMAT_POLICY", "drop")

    settings = get_settings()

    assert settings.segment_include_raw is False
    assert settings.dispatch_concurrency == 8
    assert settings.unsupported_format_policy == "drop"
    assert get_settings() is settings


def test_invalid_values_are_rejected(monkeypatch):
    monkeypatch.setenv("TWEAKER_UNSUPPORTED_FORMAT_POLICY", "explode")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)

    monkeypatch.delenv("TWEAKER_UNSUPPORTED_FORMAT_POLICY")
    with pytest.raises(ValidationError):
        Settings(_env_file=None, dispatch_concurrency=0)
