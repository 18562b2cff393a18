"""
pipeline.py – outline → chapter outlines → parts, strictly in order.

    result = HierarchicalGenerator(client, params).run()

Every state change is reported to an event sink (logging by default);
control flow never depends on the sink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from deepbook import summarizer
from deepbook.errors import (
    DuplicateContent,
    ExtractionError,
    GenerationFailed,
    RetryExhausted,
)
from deepbook.formatter import Sanitized, sanitize
from deepbook.generators.prompt_builders import (
    build_chapter_prompt,
    build_outline_prompt,
    build_part_prompt,
    build_title_prompt,
)
from deepbook.models import (
    ChapterPlan,
    ChapterSummary,
    ChapterText,
    Document,
    GenerationRequest,
    Outline,
    PartFragment,
    RunParameters,
    RunResult,
)
from deepbook.utils.extract import CHAPTER_SCHEMA, OUTLINE_SCHEMA, Extraction, extract_structured
from deepbook.utils.retry import retry_call

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    OUTLINE_PENDING = "outline_pending"
    CHAPTER_OUTLINE_PENDING = "chapter_outline_pending"
    PART_PENDING = "part_pending"
    CHAPTER_DONE = "chapter_done"
    DOCUMENT_ASSEMBLED = "document_assembled"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class PipelineEvent:
    stage: Stage
    chapter: Optional[int] = None
    part: Optional[int] = None
    detail: str = ""


def log_event(event: PipelineEvent) -> None:
    where = ""
    if event.chapter is not None:
        where += f" ch{event.chapter:02d}"
    if event.part is not None:
        where += f" part {event.part}"
    level = logging.ERROR if event.stage is Stage.FAILURE else logging.INFO
    logger.log(level, "[%s]%s %s", event.stage.value, where, event.detail)


class HierarchicalGenerator:
    def __init__(
        self,
        client: Any,
        params: RunParameters,
        on_event: Callable[[PipelineEvent], None] | None = None,
    ):
        self.client = client
        self.params = params
        self._emit = on_event or log_event

        self.document = Document()
        self.outline: Optional[Outline] = None
        self.plans: List[ChapterPlan] = []
        self.summaries: List[ChapterSummary] = []
        self.warnings: List[str] = []

    # ═════════ run ═════════
    def run(self) -> RunResult:
        try:
            self.outline = self._generate_outline()
            for index in range(1, self.outline.chapter_count + 1):
                plan = self._generate_chapter_plan(index)
                chapter = self._generate_parts(plan)
                self._finish_chapter(chapter)

            self._emit(PipelineEvent(Stage.DOCUMENT_ASSEMBLED,
                                     detail=f"{len(self.document.chapters)} chapters"))
            if self.params.title_block:
                self.document.title_block = self._generate_title()
        except GenerationFailed as exc:
            self._emit(PipelineEvent(Stage.FAILURE, detail=str(exc)))
            return RunResult(
                status="failed",
                document=self.document,
                outline=self.outline,
                failed_stage=exc.stage,
                attempts=exc.attempts,
                error=str(exc),
                warnings=self.warnings,
            )

        self._emit(PipelineEvent(Stage.SUCCESS))
        return RunResult(status="success", document=self.document,
                         outline=self.outline, warnings=self.warnings)

    # ═════════ helpers ═════════
    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _structured(self, stage: str, request: GenerationRequest, schema: Dict) -> Extraction:
        """Request + extract, re-issuing the request while the payload is unusable."""

        def attempt() -> Extraction:
            result = self.client.complete(request)
            if not result.ok:
                raise GenerationFailed(stage, result.attempts, result.message or result.failure.value)
            return extract_structured(result.text, schema)

        try:
            return retry_call(attempt, attempts=self.params.extraction_attempts,
                              retry_on=(ExtractionError,), label=f"{stage} extraction")
        except RetryExhausted as exc:
            raise GenerationFailed(stage, exc.attempts, str(exc.last_error)) from exc

    # ═════════ ① outline ═════════
    def _generate_outline(self) -> Outline:
        self._emit(PipelineEvent(Stage.OUTLINE_PENDING, detail=self.params.topic))
        found = self._structured(
            "outline",
            build_outline_prompt(self.params.topic, self.params.chapters),
            OUTLINE_SCHEMA,
        )
        declared = int(found.payload["chapters"])
        if declared != self.params.chapters:
            logger.warning("Outline declares %d chapters (asked for %d); following the outline",
                           declared, self.params.chapters)
        return Outline(text=found.free_text, chapter_count=declared)

    # ═════════ ② chapter outline ═════════
    def _generate_chapter_plan(self, index: int) -> ChapterPlan:
        self._emit(PipelineEvent(Stage.CHAPTER_OUTLINE_PENDING, chapter=index))
        found = self._structured(
            f"chapter {index} outline",
            build_chapter_prompt(self.outline, self.plans, self.summaries, index),
            CHAPTER_SCHEMA,
        )
        parts = self.params.parts_override or int(found.payload["parts"])
        plan = ChapterPlan(index=index, outline_text=found.free_text, part_count=parts)
        self.plans.append(plan)
        return plan

    # ═════════ ③ parts ═════════
    def _draft_part(self, chapter: ChapterText, part: int) -> Sanitized:
        plan = chapter.plan
        result = self.client.complete(build_part_prompt(self.outline, plan, chapter.text, part))
        if not result.ok:
            raise GenerationFailed(f"chapter {plan.index} part {part}", result.attempts,
                                   result.message or result.failure.value)

        cleaned = sanitize(result.text)
        last = chapter.last_fragment
        if last is not None and cleaned.text == last.text:
            raise DuplicateContent(ended=cleaned.ended)
        return cleaned

    def _generate_parts(self, plan: ChapterPlan) -> ChapterText:
        chapter = ChapterText(plan=plan)
        self.document.chapters.append(chapter)

        for part in range(1, plan.part_count + 1):
            self._emit(PipelineEvent(Stage.PART_PENDING, chapter=plan.index, part=part,
                                     detail=f"of {plan.part_count}"))
            try:
                cleaned = retry_call(
                    partial(self._draft_part, chapter, part),
                    attempts=1 + self.params.duplicate_retries,
                    retry_on=(DuplicateContent,),
                    label=f"ch{plan.index:02d} part {part}",
                )
            except RetryExhausted as exc:
                self._warn(f"chapter {plan.index} part {part} skipped: model kept repeating itself")
                if exc.last_error.ended:
                    break
                continue
            except GenerationFailed as exc:
                chapter.complete = False
                self._warn(f"chapter {plan.index} stopped after {len(chapter.fragments)} "
                           f"of {plan.part_count} parts: {exc}")
                break

            if cleaned.text:
                chapter.append(PartFragment(chapter=plan.index, index=part, text=cleaned.text))
            else:
                logger.warning("chapter %d part %d came back empty", plan.index, part)
            if cleaned.ended:
                logger.info("End marker in chapter %d part %d; closing chapter", plan.index, part)
                break

        return chapter

    # ═════════ ④ chapter done ═════════
    def _finish_chapter(self, chapter: ChapterText) -> None:
        self._emit(PipelineEvent(Stage.CHAPTER_DONE, chapter=chapter.plan.index,
                                 detail=f"{len(chapter.fragments)} parts, "
                                        f"{len(chapter.text.split())} words"))
        if not self.params.summaries or not chapter.fragments:
            return
        summary = summarizer.summarise(self.client, chapter)
        if summary is None:
            self._warn(f"chapter {chapter.plan.index} has no summary")
        else:
            self.summaries.append(summary)

    # ═════════ ⑤ title / contents ═════════
    def _generate_title(self) -> Optional[str]:
        result = self.client.complete(build_title_prompt(self.outline, self.document.body()))
        if not result.ok:
            self._warn(f"title block skipped: {result.message or result.failure.value}")
            return None
        return sanitize(result.text).text or None
