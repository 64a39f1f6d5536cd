"""DocumentLinker 파생 생성 / 연결 테스트."""

import pytest

from cbc_docgen.document.models import DocumentType, GeneratedDocument
from cbc_docgen.errors import DocumentNotFoundError, ExtractionEmptyError, RequestValidationError
from cbc_docgen.generation.orchestrator import GenerationOrchestrator
from cbc_docgen.linking.linker import DocumentLinker
from cbc_docgen.linking.store import InMemoryDocumentStore
from cbc_docgen.pipeline import DefaultDocumentPipeline

from conftest import FakeCompletionClient, FakePdfRenderer, breakdown_table

NOTES_RESPONSE = (
    "## Week 1: Groups of animals\n\n"
    "Animals can be grouped into mammals, birds, reptiles, amphibians and fish "
    "based on their body features. [DIAGRAM: groups of animals]"
)
PLAN_RESPONSE = (
    "## Lesson Plan\n\n"
    "Specific learning outcome: by the end of the lesson the learner should be able to "
    "describe learning concept number 2 about animal groups."
)


class FailingLinkStore(InMemoryDocumentStore):
    def add_child(self, parent_id, child_id, child_type):
        raise OSError("disk full")


def _linker(pipeline):
    return DocumentLinker(pipeline.store, pipeline)


@pytest.fixture
def source(make_pipeline, sample_request):
    """개념 분해표 하나를 만들고 (파이프라인, 클라이언트, 원본 문서)를 돌려준다."""

    def _make(*derived_responses):
        pipeline, client = make_pipeline(breakdown_table(6), *derived_responses)
        document = pipeline.generate(DocumentType.LESSON_CONCEPT_BREAKDOWN, sample_request)
        return pipeline, client, document

    return _make


class TestDerive:
    def test_lesson_notes_linked(self, source, store):
        pipeline, client, breakdown = source(NOTES_RESPONSE)
        result = _linker(pipeline).derive(breakdown.id, DocumentType.LESSON_NOTES)

        assert result.is_success
        assert result.link_created
        assert result.concepts_used == 6

        notes = result.document
        assert notes.type is DocumentType.LESSON_NOTES
        assert notes.parent_document == breakdown.id
        assert notes.metadata.source_document == breakdown.id
        assert notes.metadata.source_type is DocumentType.LESSON_CONCEPT_BREAKDOWN
        assert notes.metadata.linked_at is not None
        assert 0 < len(notes.metadata.diagram_plan) <= 5
        assert notes.term == breakdown.term

        parent = store.get(breakdown.id)
        assert [ref.id for ref in parent.child_documents] == [notes.id]
        assert parent.child_documents[0].type is DocumentType.LESSON_NOTES

        _, prompt, _ = client.calls[-1]
        assert "Learning concept number 6 about animal groups" in prompt

    def test_lesson_plan_details(self, source):
        pipeline, client, breakdown = source(PLAN_RESPONSE)
        result = _linker(pipeline).derive(breakdown.id, "lesson-plan", lesson_index=1)

        details = result.document.lesson_details
        assert details.week == "Week 1"
        assert details.lesson == 2
        assert details.concept == "Learning concept number 2 about animal groups"
        _, prompt, _ = client.calls[-1]
        assert "Learning concept number 2 about animal groups" in prompt

    def test_lesson_index_out_of_range(self, source):
        pipeline, client, breakdown = source()
        with pytest.raises(RequestValidationError):
            _linker(pipeline).derive(breakdown.id, DocumentType.LESSON_PLAN, lesson_index=6)
        assert len(client.calls) == 1

    def test_missing_source(self, make_pipeline):
        pipeline, _ = make_pipeline()
        with pytest.raises(DocumentNotFoundError):
            _linker(pipeline).derive("nope", DocumentType.LESSON_NOTES)

    def test_source_must_be_breakdown(self, make_pipeline, store):
        pipeline, _ = make_pipeline()
        notes = store.create(GeneratedDocument(type=DocumentType.LESSON_NOTES, content="notes"))
        with pytest.raises(DocumentNotFoundError):
            _linker(pipeline).derive(notes.id, DocumentType.EXERCISES)

    def test_empty_extraction_creates_nothing(self, make_pipeline, store):
        pipeline, client = make_pipeline()
        empty = store.create(GeneratedDocument(type=DocumentType.LESSON_CONCEPT_BREAKDOWN, content=""))
        with pytest.raises(ExtractionEmptyError):
            _linker(pipeline).derive(empty.id, DocumentType.LESSON_NOTES)
        assert len(store.list_all()) == 1
        assert client.calls == []

    def test_link_failure_keeps_document(self, repository, no_sleep_policy, sample_request):
        store = FailingLinkStore()
        client = FakeCompletionClient(breakdown_table(6), NOTES_RESPONSE)
        orchestrator = GenerationOrchestrator(client, repository, retry_policy=no_sleep_policy)
        pipeline = DefaultDocumentPipeline(
            orchestrator, store, pdf_renderer=FakePdfRenderer(), diagram_base_url=""
        )
        breakdown = pipeline.generate(DocumentType.LESSON_CONCEPT_BREAKDOWN, sample_request)

        result = _linker(pipeline).derive(breakdown.id, DocumentType.LESSON_NOTES)
        assert not result.link_created
        assert not result.is_success
        assert "disk full" in result.errors[0]
        assert store.get(result.document.id) is not None
        assert store.get(breakdown.id).child_documents == []


class TestQueries:
    def test_has_linked_and_linked_documents(self, source):
        pipeline, _, breakdown = source(NOTES_RESPONSE)
        linker = _linker(pipeline)
        assert not linker.has_linked(breakdown.id)

        result = linker.derive(breakdown.id, DocumentType.LESSON_NOTES)
        assert linker.has_linked(breakdown.id)
        assert not linker.has_linked(breakdown.id, "lesson-plan")
        assert [d.id for d in linker.linked_documents(breakdown.id)] == [result.document.id]

    def test_has_linked_missing_parent(self, make_pipeline):
        pipeline, _ = make_pipeline()
        with pytest.raises(DocumentNotFoundError):
            _linker(pipeline).has_linked("nope")
