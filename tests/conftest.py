from __future__ import annotations

import os
from pathlib import Path

import pytest

from visitlog.settings import reset_settings_cache


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith("VISITLOG_") or key == "OPENAI_API_KEY":
            monkeypatch.delenv(key)
    monkeypatch.setenv("VISITLOG_SETTINGS_PATH", str(tmp_path / "missing-settings.yaml"))
    monkeypatch.setenv("VISITLOG_DOTENV", str(tmp_path / "missing.env"))
    reset_settings_cache()
    yield
    reset_settings_cache()
