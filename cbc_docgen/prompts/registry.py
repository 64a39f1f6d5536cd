"""문서 타입 → 프롬프트 빌더 레지스트리."""

from __future__ import annotations

from typing import Iterable, Optional

from ..document.models import DocumentType
from .base import PromptBuilder
from .builders import (
    ExercisesBuilder,
    LessonConceptBreakdownBuilder,
    LessonNotesBuilder,
    LessonPlanBuilder,
    SchemesOfWorkBuilder,
)


def default_builders() -> list[PromptBuilder]:
    return [
        LessonConceptBreakdownBuilder(),
        SchemesOfWorkBuilder(),
        LessonPlanBuilder(),
        LessonNotesBuilder(),
        ExercisesBuilder(),
    ]


class PromptBuilderRegistry:
    """모든 DocumentType에 빌더가 하나씩 있는지 생성 시점에 검사한다."""

    def __init__(self, builders: Optional[Iterable[PromptBuilder]] = None):
        self._builders: dict[DocumentType, PromptBuilder] = {}
        for builder in builders if builders is not None else default_builders():
            self._builders[builder.doc_type] = builder

        missing = [t.value for t in DocumentType if t not in self._builders]
        if missing:
            raise ValueError(f"프롬프트 빌더 누락: {', '.join(missing)}")

    def get(self, doc_type: DocumentType | str) -> PromptBuilder:
        return self._builders[DocumentType.parse(doc_type)]

    def __contains__(self, doc_type) -> bool:
        return DocumentType.parse(doc_type) in self._builders
