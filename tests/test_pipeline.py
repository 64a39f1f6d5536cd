"""DefaultDocumentPipeline 생성 / 렌더링 테스트."""

import pytest

from cbc_docgen.document.models import DocumentStatus, DocumentType, GeneratedDocument
from cbc_docgen.errors import DocumentNotFoundError, ModelTimeoutError, PdfRenderError
from cbc_docgen.generation.orchestrator import GenerationOrchestrator
from cbc_docgen.pipeline import DefaultDocumentPipeline
from cbc_docgen.render.pdf import PdfRenderer

from conftest import FakeCompletionClient, FakePdfRenderer, breakdown_table

NOTES_RESPONSE = (
    "## Week 1: Groups of animals\n\n"
    "Animals can be grouped into mammals, birds, reptiles, amphibians and fish "
    "based on their body features.\n\n"
    "- Mammals feed their young on milk\n"
    "- Birds have feathers and lay eggs"
)


class BrokenPdfRenderer(PdfRenderer):
    def render(self, html, output_path, layout):
        raise PdfRenderError("browser crashed")


class TestGenerate:
    def test_breakdown_completed(self, make_pipeline, sample_request, store):
        pipeline, client = make_pipeline(breakdown_table(6))
        document = pipeline.generate(DocumentType.LESSON_CONCEPT_BREAKDOWN, sample_request)

        assert document.status is DocumentStatus.COMPLETED
        assert document.metadata.concept_count == 6
        assert document.metadata.total_lessons == 6
        assert document.metadata.attempts == 1
        assert document.metadata.quality_rating == "excellent"
        assert document.metadata.key_concepts[:3] == ["different", "groups", "animals"]
        assert "butterfly" in document.metadata.key_concepts
        assert document.school == "Kilimani Primary"
        assert document.subject == "Science and Technology"
        assert store.get(document.id) == document
        assert len(client.calls) == 1

    def test_degraded_is_partial(self, make_pipeline, sample_request):
        pipeline, _ = make_pipeline(*[ModelTimeoutError("model too slow")] * 3)
        document = pipeline.generate("lesson-concept-breakdown", sample_request)

        assert document.status is DocumentStatus.PARTIAL
        assert document.is_degraded
        assert document.metadata.attempts == 3
        assert "model too slow" in document.metadata.failure_reason
        assert document.metadata.concept_count == 6

    def test_model_noise_cleaned(self, make_pipeline, sample_request):
        pipeline, _ = make_pipeline("```markdown\n" + NOTES_RESPONSE + "\n```")
        document = pipeline.generate(DocumentType.LESSON_NOTES, sample_request)
        assert "```" not in document.content
        assert document.content.startswith("## Week 1")
        assert document.metadata.concept_count is None


class TestRender:
    def test_breakdown_wide_layout(self, make_pipeline, sample_request, tmp_path):
        pipeline, _ = make_pipeline(breakdown_table(6))
        document = pipeline.generate(DocumentType.LESSON_CONCEPT_BREAKDOWN, sample_request)

        result = pipeline.render(document.id, tmp_path / "breakdown.pdf")
        assert result.is_success
        assert (result.page_format, result.landscape) == ("A3", True)
        assert result.rows_rendered == 6
        assert result.parser_stage == "strict"
        assert (tmp_path / "breakdown.pdf").read_bytes().startswith(b"%PDF")

    def test_notes_portrait(self, make_pipeline, sample_request, tmp_path):
        pipeline, _ = make_pipeline(NOTES_RESPONSE)
        document = pipeline.generate(DocumentType.LESSON_NOTES, sample_request)

        result = pipeline.render(document.id, tmp_path / "notes.pdf")
        assert result.is_success
        assert (result.page_format, result.landscape) == ("A4", False)
        assert result.rows_rendered == 0
        assert result.parser_stage is None

    def test_html_reaches_renderer(self, repository, no_sleep_policy, store, sample_request, tmp_path):
        renderer = FakePdfRenderer()
        orchestrator = GenerationOrchestrator(
            FakeCompletionClient(breakdown_table(3)), repository, retry_policy=no_sleep_policy
        )
        pipeline = DefaultDocumentPipeline(orchestrator, store, pdf_renderer=renderer, diagram_base_url="")
        document = pipeline.generate(DocumentType.LESSON_CONCEPT_BREAKDOWN, sample_request)
        pipeline.render(document.id, tmp_path / "out.pdf")

        html, layout = renderer.rendered[0]
        assert layout.page_format == "A3"
        assert "Learning concept number 3 about animal groups" in html
        assert "Kilimani Primary" in html

    def test_missing_document(self, make_pipeline, tmp_path):
        pipeline, _ = make_pipeline()
        with pytest.raises(DocumentNotFoundError):
            pipeline.render("does-not-exist", tmp_path / "x.pdf")

    def test_unparseable_table_reported(self, make_pipeline, store, tmp_path):
        pipeline, _ = make_pipeline()
        document = store.create(GeneratedDocument(
            type=DocumentType.SCHEMES_OF_WORK, content="The model returned prose only."
        ))
        result = pipeline.render(document.id, tmp_path / "x.pdf")
        assert not result.is_success
        assert result.output_path is None
        assert not (tmp_path / "x.pdf").exists()

    def test_pdf_failure_reported(self, repository, no_sleep_policy, store, sample_request, tmp_path):
        orchestrator = GenerationOrchestrator(
            FakeCompletionClient(NOTES_RESPONSE), repository, retry_policy=no_sleep_policy
        )
        pipeline = DefaultDocumentPipeline(
            orchestrator, store, pdf_renderer=BrokenPdfRenderer(), diagram_base_url=""
        )
        document = pipeline.generate(DocumentType.LESSON_NOTES, sample_request)
        result = pipeline.render(document.id, tmp_path / "x.pdf")
        assert result.output_path is None
        assert "browser crashed" in result.errors[0]
