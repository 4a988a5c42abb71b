# SPDX-License-Identifier: AGPL-3.0-or-later
"""Cascade controller turning a raw upstream payload into a :class:`Table`."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .detectors import STRATEGIES, Strategy, detect_header
from .models import FieldMap, Record, Table

logger = logging.getLogger(__name__)

HEADER_KEY = "data_header"
CONTENT_KEY = "data_content"


@dataclass(frozen=True)
class Structured:
    """Payload that decoded as JSON."""

    value: Any
    text: str = ""


@dataclass(frozen=True)
class Unstructured:
    """Payload that is only usable as text."""

    text: str


Payload = Union[Structured, Unstructured]


@dataclass
class Recovery:
    """Outcome of a recovery attempt.

    ``strategy`` names the detector that produced the records (``"json"`` for a
    payload that was already a well-formed table) and is ``None`` when nothing
    was recoverable.
    """

    table: Table = field(default_factory=Table)
    strategy: Optional[str] = None

    @property
    def parsed(self) -> bool:
        return bool(self.table.header) or bool(self.table.records)


def classify_payload(raw: str | bytes) -> Payload:
    """Decide once whether *raw* is JSON or free text."""

    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        return Structured(json.loads(text), text)
    except ValueError:
        return Unstructured(text)


def is_table_shaped(value: Any) -> bool:
    return isinstance(value, Table) or (
        isinstance(value, Mapping) and HEADER_KEY in value and CONTENT_KEY in value
    )


def _merge_header(raw_header: Any) -> FieldMap:
    header: FieldMap = {}
    if isinstance(raw_header, Mapping):
        items = [raw_header]
    elif isinstance(raw_header, Sequence) and not isinstance(raw_header, str):
        items = [item for item in raw_header if isinstance(item, Mapping)]
    else:
        return header
    for item in items:
        for key, value in item.items():
            header[str(key)] = "" if value is None else str(value)
    return header


def _record_from_item(item: Mapping[str, Any]) -> Record:
    # ``{"334": [{"1": "..."}, {"2": "..."}]}`` is the strict-JSON row form.
    if len(item) == 1:
        (key, value), = item.items()
        if str(key).isdigit() and isinstance(value, list):
            fields: FieldMap = {}
            for pair in value:
                if isinstance(pair, Mapping):
                    fields.update({str(k): "" if v is None else str(v) for k, v in pair.items()})
            return Record(fields=fields, id=str(key))
    return Record.from_dict(item)


def coerce_table(value: Any) -> Optional[Table]:
    """Return *value* as a :class:`Table` if it has the table shape."""

    if isinstance(value, Table):
        return value
    if not is_table_shaped(value):
        return None
    content = value.get(CONTENT_KEY)
    records: List[Record] = []
    if isinstance(content, Sequence) and not isinstance(content, str):
        for item in content:
            if isinstance(item, Mapping):
                record = _record_from_item(item)
                if record:
                    records.append(record)
    return Table(header=_merge_header(value.get(HEADER_KEY)), records=records)


def run_cascade(text: str, strategies: Sequence[Strategy] = STRATEGIES) -> tuple[Optional[str], List[Record]]:
    """Return the first strategy that yields records, or ``(None, [])``."""

    for strategy in strategies:
        try:
            records = strategy.detect(text)
        except Exception:  # noqa: BLE001 - a broken detector must not stop the cascade
            logger.warning("Detector %s failed", strategy.name, exc_info=True)
            continue
        logger.debug("Detector %s recovered %d records", strategy.name, len(records))
        if records:
            return strategy.name, records
    return None, []


def recover_table(text: str, strategies: Sequence[Strategy] = STRATEGIES) -> Recovery:
    """Run the detector cascade over *text*."""

    try:
        header = detect_header(text)
    except Exception:  # noqa: BLE001
        logger.warning("Header detection failed", exc_info=True)
        header = {}
    strategy, records = run_cascade(text, strategies)
    if strategy is None:
        logger.info("No records recoverable (header keys: %d)", len(header))
    else:
        logger.info(
            "Recovered %d records with %s detector (header keys: %d)",
            len(records),
            strategy,
            len(header),
        )
    return Recovery(table=Table(header=header, records=records), strategy=strategy)


def recover_payload(raw: str | bytes | Payload) -> Recovery:
    """Resolve the structured/unstructured split and recover a table."""

    payload = raw if isinstance(raw, (Structured, Unstructured)) else classify_payload(raw)
    if isinstance(payload, Structured):
        table = coerce_table(payload.value)
        if table is not None and table.records:
            logger.info("Payload decoded as JSON table with %d records", len(table.records))
            return Recovery(table=table, strategy="json")
        text = payload.text or json.dumps(payload.value, ensure_ascii=False)
    else:
        text = payload.text
    return recover_table(text)


def payload_value(raw: str | bytes) -> Any:
    """Decoded JSON when possible, else the recovered table, else the text."""

    payload = classify_payload(raw)
    if isinstance(payload, Structured):
        return payload.value
    recovery = recover_table(payload.text)
    return recovery.table if recovery.parsed else payload.text


def build_proxy_response(recovery: Recovery, *, text: str, status: int, status_text: str) -> Dict[str, Any]:
    """Shape the fetch-and-recover result for callers.

    A recovery that found neither header keys nor records falls back to the
    untouched upstream text.
    """

    if recovery.parsed:
        return {
            "data": recovery.table.to_dict(),
            "status": status,
            "statusText": status_text,
            "responseType": "object",
            "parsed": True,
        }
    return {
        "data": text,
        "status": status,
        "statusText": status_text,
        "responseType": "string",
        "parsed": False,
    }


__all__ = [
    "CONTENT_KEY",
    "HEADER_KEY",
    "Payload",
    "Recovery",
    "Structured",
    "Unstructured",
    "build_proxy_response",
    "classify_payload",
    "coerce_table",
    "is_table_shaped",
    "payload_value",
    "recover_payload",
    "recover_table",
    "run_cascade",
]
