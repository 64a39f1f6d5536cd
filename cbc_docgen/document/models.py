"""생성 문서 데이터 모델 (저장/전송 형식)."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class DocumentType(str, Enum):
    LESSON_CONCEPT_BREAKDOWN = "Lesson Concept Breakdown"
    SCHEMES_OF_WORK = "Schemes of Work"
    LESSON_PLAN = "Lesson Plan"
    LESSON_NOTES = "Lesson Notes"
    EXERCISES = "Exercises"

    @property
    def is_tabular(self) -> bool:
        return self in (DocumentType.LESSON_CONCEPT_BREAKDOWN, DocumentType.SCHEMES_OF_WORK)

    @classmethod
    def parse(cls, value: "str | DocumentType") -> "DocumentType":
        """'Lesson Notes', 'lesson-notes', 'LESSON_NOTES' 모두 허용."""
        if isinstance(value, cls):
            return value
        key = value.strip().lower().replace("-", " ").replace("_", " ")
        for member in cls:
            if member.value.lower() == key or member.name.lower().replace("_", " ") == key:
                return member
        raise ValueError(f"알 수 없는 문서 타입: {value}")


class DocumentStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIAL = "partial"   # 폴백 콘텐츠로 완료됨


class LessonDetails(BaseModel):
    """파생 문서가 다루는 주차/차시/개념."""
    week: str
    lesson: Optional[int] = None
    concept: str = ""


class DerivedReference(BaseModel):
    """부모 문서가 가진 파생 문서 참조."""
    id: str
    type: DocumentType
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )

    model_config = {"populate_by_name": True}


class DiagramPlanItem(BaseModel):
    """Lesson Notes에 넣을 다이어그램 후보 한 개."""
    week: str
    concept: str
    score: int
    diagram_type: str = Field(alias="diagramType")
    source: str
    caption: str

    model_config = {"populate_by_name": True}


class DocumentMetadata(BaseModel):
    generation_time_ms: int = Field(0, alias="generationTimeMs")
    attempts: int = 0
    degraded: bool = False
    failure_reason: Optional[str] = Field(None, alias="failureReason")
    quality_score: Optional[int] = Field(None, alias="qualityScore")
    quality_rating: Optional[str] = Field(None, alias="qualityRating")
    quality_issues: list[str] = Field(default_factory=list, alias="qualityIssues")
    key_concepts: list[str] = Field(default_factory=list, alias="keyConcepts")
    content_length: int = Field(0, alias="contentLength")
    total_lessons: Optional[int] = Field(None, alias="totalLessons")
    concept_count: Optional[int] = Field(None, alias="conceptCount")
    source_document: Optional[str] = Field(None, alias="sourceDocument")
    source_type: Optional[DocumentType] = Field(None, alias="sourceType")
    linked_at: Optional[datetime] = Field(None, alias="linkedAt")
    diagram_plan: list[DiagramPlanItem] = Field(default_factory=list, alias="diagramPlan")

    model_config = {"populate_by_name": True}


class GeneratedDocument(BaseModel):
    """생성된 문서 한 건.

    type / term / strand는 생성 이후 바뀌지 않는다 (frozen).
    본문 수정은 with_content()로 사본을 만든다.
    """
    id: str = Field(default_factory=lambda: uuid4().hex)
    type: DocumentType
    term: str = ""
    grade: str = ""
    subject: str = ""
    strand: str = ""
    substrand: str = ""
    school: str = ""
    teacher_name: str = Field("", alias="teacherName")
    content: str = ""
    parent_document: Optional[str] = Field(None, alias="parentDocument")
    child_documents: list[DerivedReference] = Field(default_factory=list, alias="childDocuments")
    lesson_details: Optional[LessonDetails] = Field(None, alias="lessonDetails")
    status: DocumentStatus = DocumentStatus.PROCESSING
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )

    model_config = {"populate_by_name": True, "frozen": True}

    def with_content(self, content: str) -> "GeneratedDocument":
        metadata = self.metadata.model_copy(update={"content_length": len(content)})
        return self.model_copy(update={"content": content, "metadata": metadata})

    def with_updates(self, **updates) -> "GeneratedDocument":
        """type/term/strand 이외 필드를 바꾼 사본."""
        for locked in ("type", "term", "strand", "id"):
            if locked in updates:
                raise ValueError(f"생성 이후 변경할 수 없는 필드: {locked}")
        return self.model_copy(update=updates)

    @property
    def is_degraded(self) -> bool:
        return self.metadata.degraded
