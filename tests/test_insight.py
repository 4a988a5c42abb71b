from __future__ import annotations

from typing import Any, Mapping

import pytest

from visitlog.cascade import recover_table
from visitlog.drivers import DriverError, LLMDriver, register_driver
from visitlog.drivers import base as driver_base
from visitlog.errors import EmptyResultError, UpstreamError
from visitlog.insight import build_prompt, describe_structure, request_insight, serialize_for_prompt
from visitlog.settings import InsightSettings

SCENARIO_A = (
    '{"data_header":[{"1":"번호"},{"2":"날짜"}],'
    '"data_content":[{"334":[{"1":"334. "},{"2":"2025-03-25"}],}]}'
)


class _EchoDriver(LLMDriver):
    def __init__(self, name: str = "echo", config: Mapping[str, Any] | None = None, reply: Any = None):
        super().__init__(name, config or {})
        self.reply = reply
        self.prompts: list[str] = []

    def generate(self, prompt: str, *, metadata: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        self.prompts.append(prompt)
        if self.reply is not None:
            return self.reply
        return {"choices": [{"index": 0, "message": {"role": "assistant", "content": "방문이 늘었습니다."}}]}


class _FailingDriver(LLMDriver):
    def generate(self, prompt: str, *, metadata: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        raise DriverError("status 429: rate limited")


def test_prompt_describes_table_structure() -> None:
    table = recover_table(SCENARIO_A).table

    prompt = build_prompt(table, None, settings=InsightSettings())

    assert prompt.startswith("다음은 웹사이트 방문 로그 데이터입니다.")
    assert '- 헤더: {"1": "번호", "2": "날짜"}' in prompt
    assert "- 데이터 항목 수: 1개" in prompt
    assert '각 항목의 예시: {"1": "334. ", "2": "2025-03-25"}' in prompt
    assert InsightSettings().default_instruction in prompt


def test_custom_instruction_replaces_default() -> None:
    prompt = build_prompt("raw text", "  주말 패턴만 알려줘  ", settings=InsightSettings())

    assert "주말 패턴만 알려줘\n\nraw text" in prompt
    assert InsightSettings().default_instruction not in prompt
    assert describe_structure("raw text") == ""


def test_data_is_truncated_to_max_chars() -> None:
    assert serialize_for_prompt("x" * 20, 8) == "x" * 8
    assert len(serialize_for_prompt({"k": "v" * 100}, 10)) == 10

    prompt = build_prompt("y" * 9000, None, settings=InsightSettings())
    assert prompt.endswith("\n\n" + "y" * 8000)


def test_request_insight_returns_first_completion() -> None:
    driver = _EchoDriver()

    text = request_insight({"2023-04-01": 3}, settings=InsightSettings(), driver=driver)

    assert text == "방문이 늘었습니다."
    assert '{"2023-04-01": 3}' in driver.prompts[0]


def test_missing_api_key_is_upstream_error() -> None:
    with pytest.raises(UpstreamError):
        request_insight("data", settings=InsightSettings(api_key=None))


def test_driver_failure_is_upstream_error() -> None:
    with pytest.raises(UpstreamError, match="rate limited"):
        request_insight("data", driver=_FailingDriver("failing", {}))


@pytest.mark.parametrize(
    "reply",
    [{"choices": []}, {"choices": [{"message": {"content": "   "}}]}, {"error": {"message": "x"}}],
)
def test_empty_completion_is_empty_result_error(reply: Mapping[str, Any]) -> None:
    with pytest.raises(EmptyResultError):
        request_insight("data", driver=_EchoDriver(reply=reply))


def test_registered_driver_is_built_from_settings(monkeypatch) -> None:
    monkeypatch.setattr(driver_base, "_DRIVERS", dict(driver_base._DRIVERS))
    created: list[Mapping[str, Any]] = []

    def _factory(name: str, config: Mapping[str, Any]) -> LLMDriver:
        created.append(config)
        return _EchoDriver(name, config)

    register_driver("echo-test", _factory)
    settings = InsightSettings(driver="echo-test", api_key="sk-test", model="gpt-test")

    assert request_insight("data", settings=settings) == "방문이 늘었습니다."

    assert created[0]["api_key"] == "sk-test"
    assert created[0]["model"] == "gpt-test"
    assert created[0]["system_prompt"] == settings.system_prompt


def test_unknown_driver_is_upstream_error() -> None:
    with pytest.raises(UpstreamError, match="Unknown driver"):
        request_insight("data", settings=InsightSettings(driver="nope", api_key="sk-test"))
