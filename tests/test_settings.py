from pathlib import Path

import pytest
from pydantic import ValidationError

from visitlog.settings import ParsingSettings, ServerSettings, get_settings, reset_settings_cache


def _forget_after_test(monkeypatch, *names: str) -> None:
    # Values loaded from a dotenv file land in os.environ; make sure they go away.
    for name in names:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults_without_files() -> None:
    settings = get_settings()

    assert settings.upstream.default_url is None
    assert settings.upstream.timeout == 30.0
    assert "Mozilla/5.0" in settings.upstream.user_agent
    assert settings.insight.api_key is None
    assert settings.insight.model == "gpt-4o"
    assert settings.insight.temperature == 0.7
    assert settings.insight.max_tokens == 2000
    assert settings.parsing.date_label == "날짜"
    assert settings.server.port == 5000


def test_settings_loads_yaml_and_env(tmp_path: Path, monkeypatch) -> None:
    config = tmp_path / "settings.yaml"
    config.write_text(
        """
upstream:
  default_url: http://analytics.example/JSONAPI.apz
  timeout: 12.5
insight:
  model: gpt-test
  max_chars: 500
parsing:
  keyword_column: 9
server:
  cors_origins: http://a.example, http://b.example
        """,
        encoding="utf-8",
    )
    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "VISITLOG_UPSTREAM__TIMEOUT=24\nOPENAI_API_KEY=sk-from-dotenv\n",
        encoding="utf-8",
    )
    _forget_after_test(monkeypatch, "VISITLOG_UPSTREAM__TIMEOUT", "OPENAI_API_KEY")
    monkeypatch.setenv("VISITLOG_DOTENV", str(dotenv))
    monkeypatch.setenv("VISITLOG_SERVER__PORT", "8080")
    reset_settings_cache()

    settings = get_settings(path=config)

    assert settings.upstream.default_url.endswith("/JSONAPI.apz")
    assert settings.upstream.timeout == 24.0
    assert settings.insight.model == "gpt-test"
    assert settings.insight.max_chars == 500
    assert settings.insight.api_key == "sk-from-dotenv"
    assert settings.parsing.keyword_column == "9"
    assert settings.server.port == 8080
    assert settings.server.cors_origins == ["http://a.example", "http://b.example"]


def test_explicit_api_key_wins_over_openai_variable(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-generic")
    monkeypatch.setenv("VISITLOG_INSIGHT__API_KEY", "sk-specific")
    reset_settings_cache()

    assert get_settings().insight.api_key == "sk-specific"


def test_blank_api_key_counts_as_missing(monkeypatch) -> None:
    monkeypatch.setenv("VISITLOG_INSIGHT__API_KEY", "   ")
    reset_settings_cache()

    assert get_settings().insight.api_key is None


def test_settings_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    config = tmp_path / "other.yaml"
    config.write_text("parsing:\n  date_label: Date\n", encoding="utf-8")
    monkeypatch.setenv("VISITLOG_SETTINGS_PATH", str(config))
    reset_settings_cache()

    assert get_settings().parsing.date_label == "Date"


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    config = tmp_path / "broken.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a dictionary"):
        get_settings(path=config)


def test_column_indices_must_be_digits() -> None:
    with pytest.raises(ValidationError):
        ParsingSettings(date_column="date")
    assert ServerSettings(cors_origins="*").cors_origins == ["*"]
