# SPDX-License-Identifier: AGPL-3.0-or-later
"""Public interface for :mod:`visitlog` with lightweight imports."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any, Dict, Tuple

__all__ = [
    "AnalyticsPoint",
    "Record",
    "Recovery",
    "Stats",
    "Table",
    "classify_payload",
    "compute_stats",
    "extract_fields",
    "fetch_upstream",
    "generate_sample_points",
    "normalize_analytics",
    "payload_value",
    "recover_payload",
    "recover_table",
    "request_insight",
    "summarize_points",
]

_LAZY_ATTRS: Dict[str, Tuple[str, str]] = {
    "AnalyticsPoint": (".models", "AnalyticsPoint"),
    "Record": (".models", "Record"),
    "Stats": (".models", "Stats"),
    "Table": (".models", "Table"),
    "Recovery": (".cascade", "Recovery"),
    "classify_payload": (".cascade", "classify_payload"),
    "payload_value": (".cascade", "payload_value"),
    "recover_payload": (".cascade", "recover_payload"),
    "recover_table": (".cascade", "recover_table"),
    "compute_stats": (".stats", "compute_stats"),
    "summarize_points": (".stats", "summarize_points"),
    "extract_fields": (".fields", "extract_fields"),
    "fetch_upstream": (".transport", "fetch_upstream"),
    "generate_sample_points": (".sample", "generate_sample_points"),
    "normalize_analytics": (".normalize", "normalize_analytics"),
    "request_insight": (".insight", "request_insight"),
}

if TYPE_CHECKING:  # pragma: no cover - import-time only for type checkers
    from .cascade import Recovery, classify_payload, payload_value, recover_payload, recover_table
    from .fields import extract_fields
    from .insight import request_insight
    from .models import AnalyticsPoint, Record, Stats, Table
    from .normalize import normalize_analytics
    from .sample import generate_sample_points
    from .stats import compute_stats, summarize_points
    from .transport import fetch_upstream


def __getattr__(name: str) -> Any:
    try:
        module_name, attr_name = _LAZY_ATTRS[name]
    except KeyError as exc:
        raise AttributeError(name) from exc
    module = import_module(module_name, package=__name__)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:  # pragma: no cover - simple delegation
    return sorted(__all__)
