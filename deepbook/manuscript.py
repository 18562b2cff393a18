#!/usr/bin/env python3
"""
manuscript.py – persist a finished (or failed) run.

A successful run writes book.txt (+ title.txt); a failed run writes its
partial text to book.partial.txt so it can never be mistaken for a
finished book.  run_status.json is written either way.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import pathlib
from typing import Any, Dict, Optional

from deepbook.models import RunResult

logger = logging.getLogger(__name__)

BOOK_FILE = "book.txt"
PARTIAL_FILE = "book.partial.txt"
TITLE_FILE = "title.txt"
STATUS_FILE = "run_status.json"


# ----------------------------------------------------------------------
def build_status(result: RunResult, model: str | None = None) -> Dict[str, Any]:
    chapters = [
        {
            "num": ch.plan.index,
            "parts_planned": ch.plan.part_count,
            "parts_written": len(ch.fragments),
            "complete": ch.complete,
            "word_count": len(ch.text.split()),
        }
        for ch in result.document.chapters
    ]
    return {
        "status": result.status,
        "finished_at": dt.datetime.now(dt.timezone.utc).isoformat(),
        "model": model,
        "failed_stage": result.failed_stage,
        "attempts": result.attempts,
        "error": result.error,
        "warnings": result.warnings,
        "chapters": chapters,
        "total_words": sum(c["word_count"] for c in chapters),
    }


# ----------------------------------------------------------------------
def write_manuscript(result: RunResult, out_dir: pathlib.Path,
                     model: str | None = None) -> Optional[pathlib.Path]:
    """Write the run's artefacts; return the text file path or None if writing failed."""
    text = result.document.render()
    dest = out_dir / (BOOK_FILE if result.succeeded else PARTIAL_FILE)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        # artefacts of an earlier run must not outlive this one
        stale = [PARTIAL_FILE, TITLE_FILE] if result.succeeded else [BOOK_FILE, TITLE_FILE]
        for name in stale:
            (out_dir / name).unlink(missing_ok=True)
        if result.succeeded and result.document.title_block:
            (out_dir / TITLE_FILE).write_text(result.document.title_block + "\n", "utf-8")
        dest.write_text(text, "utf-8")
        (out_dir / STATUS_FILE).write_text(
            json.dumps(build_status(result, model), indent=2, ensure_ascii=False), "utf-8"
        )
    except OSError as exc:
        logger.error("Could not persist manuscript to %s: %s", out_dir, exc)
        return None

    logger.info("%s saved (%s words)", dest, f"{len(text.split()):,}")
    return dest


def read_status(out_dir: pathlib.Path) -> Optional[Dict[str, Any]]:
    """Return the last run's status, or None when nothing has been generated yet."""
    path = out_dir / STATUS_FILE
    if not path.exists():
        return None
    return json.loads(path.read_text("utf-8"))
