#!/usr/bin/env python3
"""
summarizer.py – returns a concise prose summary of a finished chapter.

    summary: str | None = summarizer.summarise(client, chapter, max_words=150)

A failed request yields None; the pipeline simply carries no summary
for that chapter.
"""

from __future__ import annotations

import logging

from deepbook.formatter import sanitize
from deepbook.generators.prompt_builders import build_summary_prompt
from deepbook.models import ChapterSummary, ChapterText

logger = logging.getLogger(__name__)


def summarise(client, chapter: ChapterText, max_words: int = 150) -> ChapterSummary | None:
    result = client.complete(build_summary_prompt(chapter.text, max_words))
    if not result.ok:
        logger.warning("Summary for chapter %d skipped: %s", chapter.plan.index, result.message)
        return None

    summary = sanitize(result.text).text

    # hard‑trim in case the model over‑shoots
    words = summary.split()
    if len(words) > max_words:
        summary = " ".join(words[:max_words])
    if not summary:
        logger.warning("Summary for chapter %d came back empty", chapter.plan.index)
        return None

    logger.info("Chapter %d summarised to %d words", chapter.plan.index, len(summary.split()))
    return ChapterSummary(chapter=chapter.plan.index, text=summary)
