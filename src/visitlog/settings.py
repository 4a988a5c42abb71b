# SPDX-License-Identifier: AGPL-3.0-or-later
"""Central configuration loader with YAML + environment support."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

DEFAULT_SYSTEM_PROMPT = (
    "당신은 웹사이트 방문 데이터를 분석하는 데이터 분석가입니다. "
    "주어진 데이터를 분석하고 인사이트를 제공해주세요."
)
DEFAULT_INSTRUCTION = "이 데이터를 분석하여 주요 트렌드, 패턴, 인사이트를 한국어로 요약해주세요:"


class UpstreamSettings(BaseModel):
    """Transport options for the analytics endpoint."""

    default_url: Optional[str] = None
    auth_key: Optional[str] = None
    timeout: float = 30.0
    user_agent: str = _BROWSER_USER_AGENT

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:  # noqa: D401
        if value <= 0:
            raise ValueError("timeout must be > 0")
        return float(value)


class InsightSettings(BaseModel):
    """Options for the text-generation backend."""

    driver: str = "openai"
    api_key: Optional[str] = None
    endpoint: str = "https://api.openai.com/v1"
    model: str = "gpt-4o"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, gt=0)
    timeout: float = 60.0
    max_chars: int = Field(default=8000, gt=0)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    default_instruction: str = DEFAULT_INSTRUCTION

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: Optional[str]) -> Optional[str]:  # noqa: D401
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("driver")
    @classmethod
    def _normalize_driver(cls, value: str) -> str:  # noqa: D401
        return value.strip().lower() or "openai"


class ParsingSettings(BaseModel):
    """Column conventions of the upstream log dialect."""

    date_label: str = "날짜"
    date_column: str = "2"
    time_column: str = "3"
    keyword_column: str = "8"

    @field_validator("date_column", "time_column", "keyword_column", mode="before")
    @classmethod
    def _digit_index(cls, value: Any) -> str:  # noqa: D401
        text = str(value).strip()
        if not text.isdigit():
            raise ValueError("Column indices must be decimal digits")
        return text


class ServerSettings(BaseModel):
    """HTTP service options."""

    host: str = "127.0.0.1"
    port: int = Field(default=5000, gt=0, lt=65536)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> List[str]:  # noqa: D401
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return list(value or [])


class VisitlogSettings(BaseModel):
    """Composite settings object loaded from YAML + environment variables."""

    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    insight: InsightSettings = Field(default_factory=InsightSettings)
    parsing: ParsingSettings = Field(default_factory=ParsingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


def _default_settings_path() -> Path:
    base_dir = Path(__file__).resolve().parents[2]
    return base_dir / "configs" / "settings.yaml"


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings YAML at {path} must contain a dictionary")
    return data


def _resolve_settings_path(explicit: Optional[str | Path]) -> Path:
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.getenv("VISITLOG_SETTINGS_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return _default_settings_path()


def _resolve_env_path() -> Optional[Path]:
    candidate = os.getenv("VISITLOG_DOTENV")
    if candidate:
        return Path(candidate).expanduser()
    base_dir = Path(__file__).resolve().parents[2]
    default = base_dir / ".env"
    return default if default.exists() else None


def _collect_env_overrides() -> Dict[str, Any]:
    prefix = "VISITLOG_"
    reserved = {"SETTINGS_PATH", "DOTENV"}
    overrides: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(prefix) or key[len(prefix) :] in reserved:
            continue
        parts = key[len(prefix) :].split("__")
        if len(parts) < 2:
            continue
        cursor = overrides
        for idx, part in enumerate(parts):
            normalized = part.lower()
            if idx == len(parts) - 1:
                cursor[normalized] = value
            else:
                cursor = cursor.setdefault(normalized, {})  # type: ignore[assignment]
    return overrides


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


@lru_cache(maxsize=1)
def get_settings(path: Path | None = None) -> VisitlogSettings:
    """Load the global settings, caching the resulting object."""

    env_path = _resolve_env_path()
    if env_path is not None:
        load_dotenv(dotenv_path=env_path, override=False)
    data = _read_yaml(_resolve_settings_path(path))
    merged = _deep_merge(data, _collect_env_overrides())
    insight = merged.setdefault("insight", {})
    if not insight.get("api_key") and os.getenv("OPENAI_API_KEY"):
        insight["api_key"] = os.environ["OPENAI_API_KEY"]
    return VisitlogSettings.model_validate(merged)


def reset_settings_cache() -> None:
    """Clear the cached settings instance (useful for tests)."""

    get_settings.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "DEFAULT_INSTRUCTION",
    "DEFAULT_SYSTEM_PROMPT",
    "InsightSettings",
    "ParsingSettings",
    "ServerSettings",
    "UpstreamSettings",
    "VisitlogSettings",
    "get_settings",
    "reset_settings_cache",
]
