# deepbook/models.py
from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

CHAPTER_SEPARATOR = "\n\n***\n\n"
FRAGMENT_JOINER = "\n\n"


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    purpose: str
    messages: Tuple[Message, ...]

    @classmethod
    def of(cls, purpose: str, *pairs: Tuple[str, str]) -> "GenerationRequest":
        return cls(purpose=purpose, messages=tuple(Message(role=r, content=c) for r, c in pairs))

    def as_payload(self) -> List[dict]:
        return [m.model_dump() for m in self.messages]


class FailureKind(str, Enum):
    CREDENTIAL_MISSING = "credential_missing"
    TRANSIENT_EXHAUSTED = "transient_exhausted"


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool
    text: str = ""
    failure: Optional[FailureKind] = None
    attempts: int = 0
    message: str = ""

    @classmethod
    def Ok(cls, text: str, attempts: int = 1) -> "GenerationResult":
        return cls(ok=True, text=text, attempts=attempts)

    @classmethod
    def Failed(cls, kind: FailureKind, attempts: int, message: str = "") -> "GenerationResult":
        return cls(ok=False, failure=kind, attempts=attempts, message=message)


class Outline(BaseModel):
    text: str
    chapter_count: int = Field(..., ge=1)


class ChapterPlan(BaseModel):
    index: int = Field(..., ge=1)
    outline_text: str
    part_count: int = Field(..., ge=1)


class PartFragment(BaseModel):
    model_config = ConfigDict(frozen=True)

    chapter: int = Field(..., ge=1)
    index: int = Field(..., ge=1)
    text: str


class ChapterSummary(BaseModel):
    chapter: int
    text: str


class ChapterText(BaseModel):
    plan: ChapterPlan
    fragments: List[PartFragment] = []
    complete: bool = True

    @property
    def text(self) -> str:
        return FRAGMENT_JOINER.join(f.text for f in self.fragments)

    @property
    def last_fragment(self) -> Optional[PartFragment]:
        return self.fragments[-1] if self.fragments else None

    def append(self, fragment: PartFragment) -> None:
        self.fragments.append(fragment)


class Document(BaseModel):
    title_block: Optional[str] = None
    chapters: List[ChapterText] = []

    def body(self) -> str:
        return "".join(
            f"{CHAPTER_SEPARATOR}Chapter {ch.plan.index}{FRAGMENT_JOINER}{ch.text}"
            for ch in self.chapters
        )

    def render(self) -> str:
        head = self.title_block.strip() if self.title_block else ""
        return (head + self.body()).strip() + "\n"


class RunParameters(BaseModel):
    topic: str = Field(..., min_length=1)
    chapters: int = Field(..., ge=1)
    parts_override: Optional[int] = Field(None, ge=1)
    summaries: bool = True
    title_block: bool = True
    extraction_attempts: int = Field(5, ge=1)
    duplicate_retries: int = Field(1, ge=0)


class RunResult(BaseModel):
    status: Literal["success", "failed"]
    document: Document
    outline: Optional[Outline] = None
    failed_stage: Optional[str] = None
    attempts: Optional[int] = None
    error: Optional[str] = None
    warnings: List[str] = []

    @property
    def succeeded(self) -> bool:
        return self.status == "success"
