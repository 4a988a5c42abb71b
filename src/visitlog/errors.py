# SPDX-License-Identifier: AGPL-3.0-or-later
"""Exceptions surfaced by the transport and insight layers."""

from __future__ import annotations

from typing import Optional


class UpstreamTransportError(RuntimeError):
    """Raised when the analytics endpoint cannot be fetched.

    ``status`` and ``body`` carry the upstream response verbatim when the
    failure was an HTTP status rather than a connection problem.
    """

    def __init__(self, message: str, *, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class InsightError(RuntimeError):
    """Base class for text-generation failures."""


class UpstreamError(InsightError):
    """The text-generation service is not configured or the call failed."""


class EmptyResultError(InsightError):
    """The text-generation service answered without any completion text."""


__all__ = ["EmptyResultError", "InsightError", "UpstreamError", "UpstreamTransportError"]
