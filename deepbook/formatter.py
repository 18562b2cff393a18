#!/usr/bin/env python3
"""
formatter.py — clean generated fragments before they enter the document

    from deepbook.formatter import sanitize
    text, ended = sanitize(reply)
"""

from __future__ import annotations

import re
from typing import NamedTuple

__all__ = ["END_MARKER", "Sanitized", "format_text", "sanitize"]

END_MARKER = "[[END_OF_CHAPTER]]"

PREAMBLE_RE = re.compile(
    r"^\s*(?:sure|certainly|of course|absolutely|okay|ok|alright|great|no problem)\b"
    r"[\s!,.]*"
    r"(?:here(?:'s| is| are)|below is|i(?:'ll| will| have| can)|let me|this is)"
    r"[^\n]*?[.!:]\s*",
    re.I,
)
HEADING_RE = re.compile(r"^[ \t]{0,3}#{1,6}[ \t]*", re.M)
EMPHASIS_RE = re.compile(r"\*+|`+|__+")


class Sanitized(NamedTuple):
    text: str
    ended: bool


# ----------------------------------------------------------------------
def _smart_quotes(t: str) -> str:
    return (
        t.replace("“", '"').replace("”", '"')
         .replace("‘", "'").replace("’", "'")
    )

def _normalize_dashes(t: str) -> str:
    return t.replace("—", "--").replace("–", "-")

def _unify_eol(t: str) -> str:
    return t.replace("\r\n", "\n").replace("\r", "\n")


# ----------------------------------------------------------------------
def format_text(txt: str) -> str:
    """
    Return *txt* cleaned of common whitespace / Unicode oddities.

    Rules applied (in order):

    1. Convert CR/LF variants to `\\n`.
    2. Strip trailing spaces / tabs.
    3. Collapse 3+ consecutive newlines -> one blank line.
    4. Replace “smart quotes” with straight quotes.
    5. Replace em/en dashes with ASCII `--` / `-`.
    6. Strip leading / trailing whitespace.
    """
    txt = _unify_eol(txt)
    txt = re.sub(r"[ \t]+\n", "\n", txt)       # strip EOL whitespace
    txt = re.sub(r"\n{3,}", "\n\n", txt)       # collapse blank paragraphs
    txt = _smart_quotes(txt)
    txt = _normalize_dashes(txt)
    return txt.strip()


def _clean_once(txt: str) -> str:
    txt = _smart_quotes(_unify_eol(txt))
    txt = PREAMBLE_RE.sub("", txt, count=1)
    txt = EMPHASIS_RE.sub("", txt)
    txt = HEADING_RE.sub("", txt)
    return format_text(txt)


def sanitize(raw: str) -> Sanitized:
    """
    Strip conversational preamble and markup from one generated fragment.

    Text from the end marker onward is dropped and ``ended`` is set so the
    caller stops requesting parts for the current chapter.  Cleaning repeats
    until the text stops changing, so ``sanitize`` of its own output is a no-op.
    """
    txt, ended = raw, False
    while True:
        cut = txt.find(END_MARKER)
        if cut != -1:
            txt, ended = txt[:cut], True
        cleaned = _clean_once(txt)
        if cleaned == txt:
            return Sanitized(cleaned, ended)
        txt = cleaned

