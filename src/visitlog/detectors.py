# SPDX-License-Identifier: AGPL-3.0-or-later
"""Record-boundary detectors for the upstream visit-log dialect.

Each detector scans the *entire* payload for one kind of boundary signal and
builds one :class:`~visitlog.models.Record` per boundary through the field
extractor. Detectors are ordered by how much well-formedness they assume:

1. ``bracketed``: ``"N": [ ... ],`` blocks with the trailing comma the
   upstream emits after every row.
2. ``generic``: ``"N": [ ... ]`` blocks regardless of what follows.
3. ``date_anchored``: windows around ``{"2":"YYYY-MM-DD"}`` date cells.
4. ``line``: one ``{"N":"V"}`` assignment per line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from .fields import extract_fields
from .models import FieldMap, Record

# Brackets are only allowed inside quoted values so one block never runs into
# the next one.
_INNER = r'(?P<inner>(?:"[^"]*"|[^\[\]"])*)'
BRACKETED_BLOCK = re.compile(r'"(?P<id>\d+)":\s*\[' + _INNER + r"\]\s*,")
GENERIC_BLOCK = re.compile(r'"(?P<id>\d+)":\s*\[' + _INNER + r"\]")
DATE_CELL = re.compile(r'\{"2":"(?P<date>\d{4}-\d{2}-\d{2})"\}')
LINE_FIELD = re.compile(r'^\{"(?P<index>\d+)":"(?P<value>[^"]*)"\},?$')
LINE_START = re.compile(r'^\{"(?P<id>\d+)":')
HEADER_BLOCK = re.compile(r'\{"data_header":\s*\[(?P<body>.*?)\]', re.DOTALL)
HEADER_PAIR = re.compile(r'\{"(?P<index>\d+)":"(?P<value>[^"]+)"\}')

WINDOW_BEFORE = 100
WINDOW_AFTER = 400

Detector = Callable[[str], List[Record]]


@dataclass(frozen=True)
class Strategy:
    """A named detector taking part in the cascade."""

    name: str
    detect: Detector


def detect_bracketed_blocks(text: str) -> List[Record]:
    records: List[Record] = []
    for match in BRACKETED_BLOCK.finditer(text):
        fields = extract_fields(match.group("inner"))
        if fields:
            records.append(Record(fields=fields))
    return records


def detect_generic_blocks(text: str) -> List[Record]:
    records: List[Record] = []
    for match in GENERIC_BLOCK.finditer(text):
        fields = extract_fields(match.group("inner"))
        if fields:
            records.append(Record(fields=fields, id=match.group("id")))
    return records


def detect_date_anchored(text: str) -> List[Record]:
    """Recover rows around every date cell, keeping the first row per id."""

    unique: Dict[str, Record] = {}
    for anchor in DATE_CELL.finditer(text):
        position = anchor.start()
        window = text[max(0, position - WINDOW_BEFORE) : position + WINDOW_AFTER]
        block = BRACKETED_BLOCK.search(window)
        if block is None:
            continue
        record_id = block.group("id")
        if record_id in unique:
            continue
        fields = extract_fields(block.group("inner"))
        if fields:
            unique[record_id] = Record(fields=fields, id=record_id)
    return list(unique.values())


def detect_line_records(text: str) -> List[Record]:
    records: List[Record] = []
    current: Record | None = None
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        assignment = LINE_FIELD.match(line)
        if assignment is not None:
            if current is not None:
                current.fields[assignment.group("index")] = assignment.group("value")
            continue
        start = LINE_START.match(line)
        if start is not None:
            if current:
                records.append(current)
            current = Record(id=start.group("id"))
    if current:
        records.append(current)
    return records


def detect_header(text: str) -> FieldMap:
    """Merge the ``data_header`` pairs into one column map."""

    match = HEADER_BLOCK.search(text)
    if match is None:
        return {}
    return {pair.group("index"): pair.group("value") for pair in HEADER_PAIR.finditer(match.group("body"))}


STRATEGIES: Tuple[Strategy, ...] = (
    Strategy("bracketed", detect_bracketed_blocks),
    Strategy("generic", detect_generic_blocks),
    Strategy("date_anchored", detect_date_anchored),
    Strategy("line", detect_line_records),
)


__all__ = [
    "STRATEGIES",
    "Strategy",
    "detect_bracketed_blocks",
    "detect_date_anchored",
    "detect_generic_blocks",
    "detect_header",
    "detect_line_records",
]
