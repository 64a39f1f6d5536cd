"""프롬프트 빌더 — ABC 인터페이스 + 공통 헬퍼.

빌더는 순수 함수처럼 동작한다: 같은 (요청, 참조 항목, 차시 계획)이면 같은 프롬프트.
참조 항목의 모든 필드를 프롬프트에 넣고, 빈 목록은 "Not specified"로 채워
필수 섹션이 빠지지 않게 한다.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Iterable, Sequence

from ..curriculum.models import CurriculumEntry, GenerationRequest, LessonSchedule
from ..document.models import DocumentType

NOT_SPECIFIED = "Not specified"

_CURRICULUM_NUMBER = re.compile(r"^\d+(?:\.\d+)*\s*:?\s*")
_LETTERED = re.compile(r"\s*(?=\b[a-z]\)\s)")
_LETTER_PREFIX = re.compile(r"^[a-z]\)\s*")
_NUMBERED = re.compile(r"\d+\.\s")


def escape_for_prompt(text) -> str:
    """줄바꿈/연속 공백을 한 칸으로 접는다."""
    if text is None:
        return ""
    return " ".join(str(text).split())


def clean_curriculum_number(text: str) -> str:
    """'1.2: Measurement' → 'Measurement', '3.0 Living Things' → 'Living Things'."""
    if not text:
        return text
    return _CURRICULUM_NUMBER.sub("", text.strip()).strip() or text.strip()


def split_combined(items: Sequence[str]) -> list[str]:
    """한 문자열에 뭉쳐 들어온 목록을 항목별로 나눈다.

    'a) ... b) ...', '• ... • ...', '1. ... 2. ...', 물음표로 이어진 질문들.
    항목이 2개 이상이면 이미 나뉜 것으로 보고 그대로 둔다.
    """
    items = [s.strip() for s in items if s and s.strip()]
    if len(items) != 1:
        return items
    text = items[0]

    if re.search(r"\bb\)\s", text):
        parts = [_LETTER_PREFIX.sub("", p).strip() for p in _LETTERED.split(text)]
    elif "•" in text:
        parts = [p.strip() for p in text.split("•")]
    elif _NUMBERED.search(text) and len(_NUMBERED.findall(text)) > 1:
        parts = [p.strip() for p in _NUMBERED.split(text)]
    elif text.count("?") > 1:
        parts = [p.strip() + "?" for p in text.split("?") if p.strip()]
    else:
        return items

    parts = [p for p in parts if len(p) > 5]
    return parts or items


def numbered(items: Iterable[str], start: int = 1) -> str:
    lines = [f"{i}. {escape_for_prompt(item)}" for i, item in enumerate(items, start)]
    return "\n".join(lines) if lines else NOT_SPECIFIED


def lettered(items: Iterable[str]) -> str:
    lines = [f"{chr(97 + i)}) {escape_for_prompt(item)}" for i, item in enumerate(items)]
    return "\n".join(lines) if lines else NOT_SPECIFIED


def joined(items: Iterable[str], sep: str = ", ") -> str:
    values = [escape_for_prompt(i) for i in items if i]
    return sep.join(values) if values else NOT_SPECIFIED


class PromptBuilder(ABC):
    """문서 타입별 프롬프트 빌더 추상 인터페이스."""

    doc_type: DocumentType

    @abstractmethod
    def build(
        self,
        request: GenerationRequest,
        entry: CurriculumEntry,
        schedule: LessonSchedule,
    ) -> str:
        """요청 + 참조 항목 + 차시 계획 → 모델에 보낼 프롬프트."""

    def system_message(self) -> str:
        return (
            f"You are a Kenyan CBC curriculum document generator specialized in creating "
            f"{self.doc_type.value}.\n\n"
            "CORE PRINCIPLES:\n"
            "- Generate comprehensive, professionally structured educational content\n"
            "- Align with the CBC framework and KICD standards\n"
            "- Use clear, age-appropriate language\n"
            "- Include practical Kenyan context and examples\n"
            "- Follow proper markdown formatting\n\n"
            "Generate professional content that serves the needs of Kenyan educators and learners."
        )

    # ── 공통 섹션 ──

    def _document_information(
        self, request: GenerationRequest, schedule: LessonSchedule | None = None
    ) -> str:
        lines = [
            f"SCHOOL: {escape_for_prompt(request.school)}",
            f"FACILITATOR: {escape_for_prompt(request.teacher_name)}",
            f"GRADE: {escape_for_prompt(request.grade)}",
            f"SUBJECT: {escape_for_prompt(request.learning_area)}",
            f"TERM: {escape_for_prompt(request.term)}",
        ]
        if schedule is not None:
            lines += [
                f"WEEKS: {schedule.weeks}",
                f"LESSONS PER WEEK: {schedule.lessons_per_week}",
                f"TOTAL LESSONS: {schedule.total_lessons}",
            ]
        return "\n".join(lines)

    def _curriculum_data(self, entry: CurriculumEntry) -> str:
        return "\n\n".join([
            "SPECIFIC LEARNING OUTCOMES (SLO):\n" + numbered(split_combined(entry.slo)),
            "LEARNING EXPERIENCES:\n" + numbered(split_combined(entry.learning_experiences)),
            "KEY INQUIRY QUESTIONS:\n" + numbered(split_combined(entry.key_inquiry_questions)),
            "LEARNING RESOURCES:\n" + joined(entry.resources),
            "ASSESSMENT SKILLS:\n" + numbered(a.skill for a in entry.assessment if a.skill),
            "REFLECTION:\n" + numbered(entry.reflection),
        ])
