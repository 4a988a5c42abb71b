# SPDX-License-Identifier: AGPL-3.0-or-later
"""Compose analysis prompts and submit them to the text-generation backend."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from .cascade import CONTENT_KEY, HEADER_KEY, coerce_table, is_table_shaped
from .drivers import DriverError, LLMDriver, create_registered_driver
from .errors import EmptyResultError, UpstreamError
from .models import Table
from .settings import InsightSettings

logger = logging.getLogger(__name__)

PROMPT_INTRO = "다음은 웹사이트 방문 로그 데이터입니다.\n\n"


def _jsonable(data: Any) -> Any:
    if isinstance(data, Table):
        return data.to_dict()
    return data


def serialize_for_prompt(data: Any, max_chars: int) -> str:
    """Bound *data* to *max_chars* characters of text."""

    if isinstance(data, str):
        return data[:max_chars]
    return json.dumps(_jsonable(data), ensure_ascii=False, default=str)[:max_chars]


def describe_structure(data: Any) -> str:
    """Short description of a table-shaped payload; empty for anything else."""

    if not is_table_shaped(data):
        return ""
    if isinstance(data, Table):
        payload = data.to_dict()
        header, content = payload[HEADER_KEY], payload[CONTENT_KEY]
    else:
        header, content = data.get(HEADER_KEY), data.get(CONTENT_KEY)
    if not isinstance(content, list):
        table = coerce_table(data)
        content = [record.to_dict() for record in table.records] if table else []
    example = content[0] if content else None
    return (
        "이 데이터는 다음과 같은 구조를 가지고 있습니다:\n"
        f"- 헤더: {json.dumps(header, ensure_ascii=False)}\n"
        f"- 데이터 항목 수: {len(content)}개\n\n"
        f"각 항목의 예시: {json.dumps(example, ensure_ascii=False)}\n\n"
    )


def build_prompt(data: Any, instruction: Optional[str] = None, *, settings: InsightSettings) -> str:
    """Return the user message: intro, structure, instruction, bounded data."""

    body = serialize_for_prompt(data, settings.max_chars)
    custom = (instruction or "").strip()
    lead = custom or settings.default_instruction
    return f"{PROMPT_INTRO}{describe_structure(data)}{lead}\n\n{body}"


def driver_config(settings: InsightSettings) -> Dict[str, Any]:
    return {
        "api_key": settings.api_key,
        "endpoint": settings.endpoint,
        "model": settings.model,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "timeout": settings.timeout,
        "system_prompt": settings.system_prompt,
    }


def _first_completion(raw: Mapping[str, Any]) -> str:
    choices: List[Any] = list(raw.get("choices") or [])
    if not choices or not isinstance(choices[0], Mapping):
        return ""
    choice = choices[0]
    message = choice.get("message") or {}
    text = message.get("content") if isinstance(message, Mapping) else None
    return str(text or choice.get("text") or "")


def request_insight(
    data: Any,
    instruction: Optional[str] = None,
    *,
    settings: Optional[InsightSettings] = None,
    driver: Optional[LLMDriver] = None,
) -> str:
    """Ask the backend for prose insights about *data*.

    Raises :class:`UpstreamError` when no API key is configured or the call
    fails, and :class:`EmptyResultError` when no completion text comes back.
    """

    settings = settings or InsightSettings()
    if driver is None:
        if not settings.api_key:
            raise UpstreamError("Text-generation API key is not configured")
        try:
            driver = create_registered_driver(settings.driver, driver_config(settings))
        except DriverError as exc:
            raise UpstreamError(str(exc)) from exc

    prompt = build_prompt(data, instruction, settings=settings)
    logger.info(
        "Requesting insight via %s (%s prompt, %d chars)",
        driver.name,
        "custom" if (instruction or "").strip() else "default",
        len(prompt),
    )
    try:
        raw = driver.generate(prompt)
    except DriverError as exc:
        logger.error("Insight request failed: %s", exc)
        raise UpstreamError(str(exc)) from exc

    text = _first_completion(raw).strip()
    if not text:
        raise EmptyResultError("Text-generation service returned no completion text")
    return text


__all__ = [
    "build_prompt",
    "describe_structure",
    "driver_config",
    "request_insight",
    "serialize_for_prompt",
]
