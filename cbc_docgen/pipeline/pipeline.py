"""문서 생성 파이프라인 — ABC 인터페이스 + 구현체.

generate: 오케스트레이터 → 출력 정리 → (표 문서) 행 정규화 → 품질 평가 → 저장
render:   저장 문서 → 표 복원 → HTML → PDF
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..config import DIAGRAM_BASE_URL
from ..curriculum.models import GenerationRequest
from ..document.models import (
    DiagramPlanItem,
    DocumentMetadata,
    DocumentStatus,
    DocumentType,
    GeneratedDocument,
    LessonDetails,
)
from ..errors import DocgenError
from ..generation.orchestrator import GenerationOrchestrator
from ..linking.store import DocumentStore
from ..parsing.extractor import ConceptExtractor, ExtractionContext
from ..parsing.normalizer import TableNormalizer, clean_model_output
from ..render.html import HtmlDocumentBuilder, embed_images
from ..render.pdf import PdfRenderer, PlaywrightPdfRenderer
from ..render.table_renderer import TableRenderer
from .models import RenderResult
from .quality import assess_curriculum_quality

logger = logging.getLogger(__name__)


class DocumentPipeline(ABC):
    """문서 생성/렌더링 파이프라인 추상 인터페이스."""

    @abstractmethod
    def generate(
        self,
        doc_type: DocumentType | str,
        request: GenerationRequest,
        lesson_details: Optional[LessonDetails] = None,
        diagram_plan: Optional[list[DiagramPlanItem]] = None,
    ) -> GeneratedDocument:
        """요청 하나로 문서를 생성하고 저장한다. 모델이 실패해도 폴백 문서가 저장된다."""

    @abstractmethod
    def render(self, doc_id: str, output_path: Path) -> RenderResult:
        """저장된 문서를 PDF로 렌더링한다."""


class DefaultDocumentPipeline(DocumentPipeline):
    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        store: DocumentStore,
        extractor: Optional[ConceptExtractor] = None,
        table_renderer: Optional[TableRenderer] = None,
        html_builder: Optional[HtmlDocumentBuilder] = None,
        pdf_renderer: Optional[PdfRenderer] = None,
        diagram_base_url: str = DIAGRAM_BASE_URL,
    ):
        self._orchestrator = orchestrator
        self._store = store
        self._extractor = extractor or ConceptExtractor()
        self._tables = table_renderer or TableRenderer()
        self._html = html_builder or HtmlDocumentBuilder(self._tables)
        self._pdf = pdf_renderer or PlaywrightPdfRenderer()
        self._diagram_base_url = diagram_base_url

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def orchestrator(self) -> GenerationOrchestrator:
        return self._orchestrator

    # ── 생성 ──

    def generate(self, doc_type, request, lesson_details=None, diagram_plan=None):
        doc_type = DocumentType.parse(doc_type)
        outcome = self._orchestrator.generate(doc_type, request)

        content = clean_model_output(outcome.content)
        normalizer = TableNormalizer.for_type(doc_type)
        if normalizer is not None:
            content = normalizer.normalize(content)

        req = outcome.request
        quality = assess_curriculum_quality(outcome.entry)
        concept_count = None
        if doc_type is DocumentType.LESSON_CONCEPT_BREAKDOWN:
            context = ExtractionContext(term=req.term, strand=req.strand, substrand=req.substrand)
            concept_count = self._extractor.count_concept_rows(content, context)
            if concept_count != outcome.schedule.total_lessons:
                logger.warning(
                    f"[{doc_type.value}] 개념 행 {concept_count}개 "
                    f"(목표 {outcome.schedule.total_lessons}개)"
                )

        metadata = DocumentMetadata(
            generation_time_ms=outcome.elapsed_ms,
            attempts=outcome.attempts,
            degraded=outcome.degraded,
            failure_reason=outcome.failure_reason,
            quality_score=quality.score,
            quality_rating=quality.rating,
            quality_issues=quality.issues,
            key_concepts=quality.key_concepts,
            content_length=len(content),
            total_lessons=outcome.schedule.total_lessons,
            concept_count=concept_count,
            diagram_plan=diagram_plan or [],
        )
        document = GeneratedDocument(
            type=doc_type,
            term=req.term,
            grade=req.grade,
            subject=req.learning_area,
            strand=req.strand,
            substrand=req.substrand,
            school=req.school,
            teacher_name=req.teacher_name,
            content=content,
            lesson_details=lesson_details,
            status=DocumentStatus.PARTIAL if outcome.degraded else DocumentStatus.COMPLETED,
            metadata=metadata,
        )
        self._store.create(document)
        logger.info(
            f"[{doc_type.value}] 저장 완료: {document.id} "
            f"({document.status.value}, 품질 {quality.score}/{quality.rating})"
        )
        return document

    # ── 렌더링 ──

    def render(self, doc_id, output_path):
        document = self._store.require(doc_id)
        doc_type = DocumentType.parse(document.type)
        errors: list[str] = []

        table = None
        if doc_type.is_tabular:
            try:
                table = self._tables.parse(doc_type, document.content)
            except DocgenError as e:
                msg = f"[{doc_id}] 표 복원 실패: {e}"
                logger.error(msg)
                return RenderResult(documentId=doc_id, errors=[msg])

        if self._diagram_base_url:
            document = document.with_content(
                embed_images(document.content, self._diagram_base_url)
            )

        html, layout = self._html.build(document, table)
        try:
            path = self._pdf.render(html, Path(output_path), layout)
        except DocgenError as e:
            msg = f"[{doc_id}] PDF 렌더링 실패: {e}"
            logger.error(msg)
            errors.append(msg)
            path = None

        return RenderResult(
            documentId=doc_id,
            outputPath=str(path) if path else None,
            pageFormat=layout.page_format,
            landscape=layout.landscape,
            rowsRendered=len(table.rows) if table else 0,
            parserStage=table.stage if table else None,
            errors=errors,
        )
