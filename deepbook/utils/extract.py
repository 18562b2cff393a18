"""
Pull the embedded JSON control payload out of a free-form model reply.

Usage (inside other modules):
    from deepbook.utils.extract import extract_structured, CHAPTER_SCHEMA
    found = extract_structured(reply, CHAPTER_SCHEMA)   # raises ExtractionError
    found.payload["parts"], found.free_text
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, NamedTuple

import jsonschema

from deepbook.errors import ExtractionError, ExtractionFailure

SCHEMAS = Path(__file__).resolve().parents[1] / "schemas"

_WRAPPER_KEYS = {"meta", "metadata", "plan", "payload"}


class Extraction(NamedTuple):
    free_text: str
    payload: Dict[str, Any]


# ─── internal helpers ────────────────────────────────────────────────────
def _load_schema(name: str) -> Dict[str, Any]:
    return json.loads((SCHEMAS / name).read_text(encoding="utf-8"))


def _maybe_unwrap(obj: Dict[str, Any]) -> Dict[str, Any]:
    """
    Models sometimes wrap the real payload:

        {"metadata": {"parts": 4}}

    Accept that pattern and unwrap it.  Otherwise return the object as-is.
    """
    if len(obj) == 1:
        key, value = next(iter(obj.items()))
        if key in _WRAPPER_KEYS and isinstance(value, dict):
            return value
    return obj


def _find_span(text: str) -> tuple[int, int] | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return start, end + 1


# ─── public API ──────────────────────────────────────────────────────────
OUTLINE_SCHEMA = _load_schema("outline_payload.schema.json")
CHAPTER_SCHEMA = _load_schema("chapter_payload.schema.json")


def extract_structured(text: str, schema: Dict[str, Any]) -> Extraction:
    span = _find_span(text)
    if span is None:
        raise ExtractionError(ExtractionFailure.NO_PAYLOAD)

    start, end = span
    candidate = text[start:end]
    if '"' not in candidate:
        candidate = candidate.replace("'", '"')

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ExtractionError(ExtractionFailure.MALFORMED_PAYLOAD, str(e)) from e
    if not isinstance(data, dict):
        raise ExtractionError(ExtractionFailure.MALFORMED_PAYLOAD, "payload is not an object")

    data = _maybe_unwrap(data)
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise ExtractionError(ExtractionFailure.INVALID_SCHEMA, e.message) from e

    return Extraction((text[:start] + text[end:]).strip(), data)
