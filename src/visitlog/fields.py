# SPDX-License-Identifier: AGPL-3.0-or-later
"""Leaf parser recovering ``{"N":"V"}`` pairs from a text fragment."""

from __future__ import annotations

import re
from typing import Iterator, Tuple

from .models import FieldMap

FIELD_PAIR = re.compile(r'\{"(?P<index>\d+)":"(?P<value>[^"]*)"\}')


def iter_field_pairs(fragment: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(index, value)`` pairs in the order they appear."""

    for match in FIELD_PAIR.finditer(fragment):
        yield match.group("index"), match.group("value")


def extract_fields(fragment: str) -> FieldMap:
    """Return every pair found in *fragment*; text between pairs is ignored."""

    return dict(iter_field_pairs(fragment))


__all__ = ["FIELD_PAIR", "extract_fields", "iter_field_pairs"]
