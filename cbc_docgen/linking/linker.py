"""개념 분해표 → 파생 문서 생성 + 부모↔자식 연결.

파생 문서 생성과 연결 저장은 독립된 두 단계다. 연결 저장이 실패해도
이미 저장된 파생 문서는 지우지 않고 link_created=False로 보고한다.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ..curriculum.models import ConceptRecord, GenerationRequest
from ..document.models import (
    DiagramPlanItem,
    DocumentType,
    GeneratedDocument,
    LessonDetails,
)
from ..errors import (
    DocumentNotFoundError,
    ExtractionEmptyError,
    LinkPersistenceError,
    RequestValidationError,
)
from ..parsing.extractor import ConceptExtractor, ExtractionContext
from ..pipeline.models import DerivationResult
from ..pipeline.pipeline import DocumentPipeline
from ..visuals.scorer import ConceptSelector
from .store import DocumentStore

logger = logging.getLogger(__name__)


class DocumentLinker:
    def __init__(
        self,
        store: DocumentStore,
        pipeline: DocumentPipeline,
        extractor: Optional[ConceptExtractor] = None,
        selector: Optional[ConceptSelector] = None,
    ):
        self._store = store
        self._pipeline = pipeline
        self._extractor = extractor or ConceptExtractor()
        self._selector = selector or ConceptSelector()

    # ── 파생 ──

    def derive(
        self,
        source_id: str,
        target_type: DocumentType | str,
        request: Optional[GenerationRequest] = None,
        lesson_index: Optional[int] = None,
    ) -> DerivationResult:
        target_type = DocumentType.parse(target_type)
        source = self._load_source(source_id)

        context = ExtractionContext(term=source.term, strand=source.strand, substrand=source.substrand)
        records = self._extractor.extract(
            source.content, context, max_rows=source.metadata.total_lessons
        )
        if not records:
            raise ExtractionEmptyError(f"[{source_id}] 개념 분해표에서 개념을 찾지 못했습니다.")
        logger.info(f"[{source_id}] 개념 {len(records)}개 추출 → {target_type.value} 생성")

        derived = self._derived_request(source, records, request)
        lesson_details = None
        diagram_plan = None

        if target_type is DocumentType.LESSON_PLAN:
            record, index = self._pick_lesson(records, lesson_index)
            derived = replace(
                derived,
                lesson_number=index + 1,
                week_number=record.week_number,
                specific_concept=record.concept,
            )
            lesson_details = LessonDetails(week=record.week, lesson=index + 1, concept=record.concept)
        elif target_type is DocumentType.LESSON_NOTES:
            diagram_plan = self._diagram_plan(records, derived)

        document = self._pipeline.generate(
            target_type, derived, lesson_details=lesson_details, diagram_plan=diagram_plan
        )

        link_created = True
        errors: list[str] = []
        try:
            self._link(source, document)
        except Exception as e:
            err = LinkPersistenceError(f"연결 저장 실패 ({source.id} → {document.id}): {e}")
            logger.error(str(err))
            errors.append(str(err))
            link_created = False

        return DerivationResult(
            document=self._store.get(document.id) or document,
            link_created=link_created,
            concepts_used=len(records),
            errors=errors,
        )

    def _load_source(self, source_id: str) -> GeneratedDocument:
        source = self._store.get(source_id)
        if source is None:
            raise DocumentNotFoundError(f"원본 문서 없음: {source_id}")
        if DocumentType.parse(source.type) is not DocumentType.LESSON_CONCEPT_BREAKDOWN:
            raise DocumentNotFoundError(
                f"원본 문서가 개념 분해표가 아닙니다: {source_id} ({source.type.value})"
            )
        return source

    @staticmethod
    def _derived_request(
        source: GeneratedDocument,
        records: list[ConceptRecord],
        request: Optional[GenerationRequest],
    ) -> GenerationRequest:
        """요청 필드를 우선하고 빈 필드는 원본 문서 값으로 채운다."""
        return (request or GenerationRequest()).with_defaults(
            school=source.school,
            teacher_name=source.teacher_name,
            grade=source.grade,
            learning_area=source.subject,
            strand=source.strand,
            substrand=source.substrand,
            term=source.term,
            concepts=tuple(records),
        )

    @staticmethod
    def _pick_lesson(records: list[ConceptRecord], lesson_index: Optional[int]) -> tuple[ConceptRecord, int]:
        index = lesson_index or 0
        if not 0 <= index < len(records):
            raise RequestValidationError(
                f"차시 번호 범위 초과: {index} (개념 {len(records)}개)"
            )
        return records[index], index

    def _diagram_plan(self, records: list[ConceptRecord], request: GenerationRequest) -> list[DiagramPlanItem]:
        selected = self._selector.select(records, request.learning_area, request.grade)
        return [
            DiagramPlanItem(
                week=s.record.week,
                concept=s.record.concept,
                score=s.score,
                diagram_type=s.spec.diagram_type,
                source=s.spec.source,
                caption=s.caption,
            )
            for s in selected
        ]

    def _link(self, parent: GeneratedDocument, child: GeneratedDocument) -> None:
        self._store.add_child(parent.id, child.id, child.type)
        self._store.set_parent(child.id, parent)
        logger.info(f"연결 완료: {parent.id} → {child.id} ({child.type.value})")

    # ── 조회 ──

    def linked_documents(self, parent_id: str) -> list[GeneratedDocument]:
        return self._store.children(parent_id)

    def has_linked(self, parent_id: str, doc_type: DocumentType | str = DocumentType.LESSON_NOTES) -> bool:
        doc_type = DocumentType.parse(doc_type)
        parent = self._store.require(parent_id)
        return any(ref.type == doc_type for ref in parent.child_documents)
