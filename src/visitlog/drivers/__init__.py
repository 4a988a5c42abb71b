# SPDX-License-Identifier: AGPL-3.0-or-later
"""Driver implementations for the insight backend."""

from .base import DriverError, DriverFactory, LLMDriver, create_registered_driver, register_driver
from .openai_driver import OpenAIDriver

__all__ = [
    "DriverError",
    "DriverFactory",
    "LLMDriver",
    "OpenAIDriver",
    "create_registered_driver",
    "register_driver",
]
