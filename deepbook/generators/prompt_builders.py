"""
Prompt builders for every generation step.
• Outline and chapter outlines must end with a one-line JSON control payload.
• Parts are plain prose; the model may emit END_MARKER to close a chapter early.
"""

from __future__ import annotations

from textwrap import dedent
from typing import List, Sequence

from deepbook.formatter import END_MARKER
from deepbook.models import ChapterPlan, ChapterSummary, GenerationRequest, Outline

WRITER_SYSTEM = dedent(
    """
    You are BookWriter, an author producing a long non-fiction book in plain text.
    * No markdown, no headings, no bullet symbols.
    * No greetings, no commentary about the task, no closing remarks.
    """
).strip()


def _context_block(plans: Sequence[ChapterPlan], summaries: Sequence[ChapterSummary]) -> str:
    by_chapter = {s.chapter: s.text for s in summaries}
    blocks: List[str] = []
    for p in plans:
        block = f"CHAPTER {p.index} OUTLINE:\n{p.outline_text}"
        if p.index in by_chapter:
            block += f"\n\nCHAPTER {p.index} SUMMARY:\n{by_chapter[p.index]}"
        blocks.append(block)
    return "\n\n".join(blocks) if blocks else "(none yet)"


def build_outline_prompt(topic: str, chapters: int) -> GenerationRequest:
    user = dedent(
        f"""
        Plan a book about: {topic}

        Write an outline of exactly {chapters} chapters: one short paragraph per chapter.
        After the outline, on its own line, output ONLY this JSON object:
        {{"chapters": {chapters}}}
        """
    ).strip()
    return GenerationRequest.of("outline", ("system", WRITER_SYSTEM), ("user", user))


def build_chapter_prompt(
    outline: Outline,
    plans: Sequence[ChapterPlan],
    summaries: Sequence[ChapterSummary],
    index: int,
) -> GenerationRequest:
    user = (
        "BOOK_OUTLINE:\n"
        + outline.text
        + "\n\nCHAPTERS_SO_FAR:\n"
        + _context_block(plans, summaries)
        + "\n\n"
        + dedent(
            f"""
            Write the detailed outline of chapter {index} of {outline.chapter_count}.
            Split it into ordered parts, one line per part.
            Finish with ONLY this JSON object on its own line, N being the number of parts:
            {{"parts": N}}
            """
        ).strip()
    )
    return GenerationRequest.of("chapter_outline", ("system", WRITER_SYSTEM), ("user", user))


def build_part_prompt(outline: Outline, plan: ChapterPlan, running_text: str, part: int) -> GenerationRequest:
    s_msg = f"{WRITER_SYSTEM}\n* If the chapter is already complete, write {END_MARKER} and stop."
    u_msg = (
        "BOOK_OUTLINE:\n"
        + outline.text
        + f"\n\nCHAPTER {plan.index} OUTLINE:\n"
        + plan.outline_text
        + "\n\nCHAPTER_TEXT_SO_FAR:\n"
        + (running_text or "(chapter starts here)")
        + f"\n\nWrite part {part} of {plan.part_count} of chapter {plan.index}. "
          "Continue seamlessly; do not repeat earlier text."
    )
    return GenerationRequest.of("part", ("system", s_msg), ("user", u_msg))


def build_summary_prompt(chapter_text: str, max_words: int = 150) -> GenerationRequest:
    prompt = dedent(
        f"""
        Summarise the chapter in 80-{max_words} words.
        Return ONLY the prose summary.  Do not add lists, markdown,
        or any metadata – just plain sentences.
        """
    ).strip()
    return GenerationRequest.of("summary", ("user", prompt), ("user", chapter_text))


def build_title_prompt(outline: Outline, document_text: str) -> GenerationRequest:
    prompt = dedent(
        """
        Write the front matter for the book below: a title on the first line,
        a blank line, then a numbered table of contents with one line per chapter.
        Plain text only.
        """
    ).strip()
    return GenerationRequest.of(
        "title",
        ("system", WRITER_SYSTEM),
        ("user", prompt),
        ("user", "BOOK_OUTLINE:\n" + outline.text + "\n\nBOOK_TEXT:\n" + document_text),
    )
