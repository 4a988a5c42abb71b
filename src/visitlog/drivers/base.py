# SPDX-License-Identifier: AGPL-3.0-or-later
"""Driver base class and the name lookup used by the insight requester."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Dict, Mapping


class DriverError(RuntimeError):
    """Raised when a driver cannot be built or cannot complete a request."""


class LLMDriver(ABC):
    """One text-generation backend configured from ``InsightSettings``."""

    def __init__(self, name: str, config: Mapping[str, Any]):
        self.name = name
        self.config = dict(config)

    @abstractmethod
    def generate(self, prompt: str, *, metadata: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        """Send *prompt* and return the raw chat-completions response."""


# A driver class satisfies this signature as well as a plain function does.
DriverFactory = Callable[[str, Mapping[str, Any]], LLMDriver]

_DRIVERS: Dict[str, DriverFactory] = {}


def register_driver(name: str, factory: DriverFactory) -> None:
    """Make *factory* available under ``insight.driver = name``."""

    _DRIVERS[name.strip().lower()] = factory


def create_registered_driver(name: str, config: Mapping[str, Any]) -> LLMDriver:
    """Build the driver configured as *name*."""

    factory = _DRIVERS.get(name.strip().lower())
    if factory is None:
        known = ", ".join(sorted(_DRIVERS)) or "none"
        raise DriverError(f"Unknown driver '{name}' (registered: {known})")
    return factory(name, config)
