# SPDX-License-Identifier: AGPL-3.0-or-later
"""OpenAI Chat Completions driver."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from .base import DriverError, LLMDriver, register_driver


class OpenAIDriver(LLMDriver):
    """Minimal OpenAI client using the chat completions REST API.

    Requests are sent once; callers decide whether a failure is worth
    repeating.
    """

    def __init__(self, name: str, config: Mapping[str, Any]):
        super().__init__(name, config)
        for key in ("api_key", "model"):
            if not self.config.get(key):
                raise DriverError(f"OpenAI driver requires '{key}' in configuration")
        self._transport = self.config.pop("transport", None)

    def generate(self, prompt: str, *, metadata: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        endpoint = str(self.config.get("endpoint", "https://api.openai.com/v1")).rstrip("/")
        url = f"{endpoint}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.config['api_key']}",
            "content-type": "application/json",
        }
        user_agent = self.config.get("user_agent")
        if user_agent:
            headers["user-agent"] = str(user_agent)
        messages = []
        system_prompt = self.config.get("system_prompt")
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        payload: dict[str, Any] = {
            "model": self.config["model"],
            "messages": messages,
            "temperature": self.config.get("temperature", 0.7),
            "max_tokens": self.config.get("max_tokens", 2000),
        }
        if metadata:
            payload["metadata"] = dict(metadata)
        timeout = self.config.get("timeout", 60.0)
        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as client:
                response = client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text[:500]
            raise DriverError(
                f"OpenAI request failed with status {exc.response.status_code}: {detail}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise DriverError(f"OpenAI request failed: {exc}") from exc


register_driver("openai", OpenAIDriver)
