"""공통 fixture — 가짜 모델 클라이언트, 메모리 저장소, 임시 참조 데이터."""

import json

import pytest

from cbc_docgen.curriculum.models import CurriculumEntry, GenerationRequest
from cbc_docgen.curriculum.repository import JsonCurriculumRepository
from cbc_docgen.generation.orchestrator import GenerationOrchestrator
from cbc_docgen.generation.retry import RetryPolicy
from cbc_docgen.linking.store import InMemoryDocumentStore
from cbc_docgen.llm.client import TextCompletionClient
from cbc_docgen.pipeline.pipeline import DefaultDocumentPipeline
from cbc_docgen.render.pdf import PdfRenderer


SAMPLE_ENTRY = {
    "grade": "Grade 4",
    "learningArea": "Science and Technology",
    "strand": "Living Things",
    "substrand": "Animals",
    "slo": [
        "a) identify different groups of animals in the environment "
        "b) describe the life cycle of a butterfly "
        "c) appreciate the importance of animals in the community"
    ],
    "learningExperiences": ["Learners observe animals in the school compound"],
    "keyInquiryQuestions": ["How do animals grow?"],
    "resources": ["Charts", "Hand lenses"],
    "assessment": [{"skill": "Describing life cycles", "meets": "Describes all stages"}],
    "reflection": ["Were learners able to describe the stages?"],
    "noOfLessons": 6,
}

SAMPLE_CONFIG = {
    "grade": "Grade 4",
    "learningArea": "Science and Technology",
    "lessonDuration": 35,
    "lessonsPerWeek": 3,
    "weeksPerTerm": 10,
}


def breakdown_table(rows: int, lessons_per_week: int = 3) -> str:
    """행 수가 정확한 정상 개념 분해표."""
    lines = [
        "| Term | Week | Strand | Sub-strand | Learning Concept |",
        "|------|------|--------|------------|------------------|",
    ]
    for i in range(rows):
        week = i // lessons_per_week + 1
        lines.append(
            f"| Term 1 | Week {week} | Living Things | Animals | "
            f"Learning concept number {i + 1} about animal groups |"
        )
    return "\n".join(lines)


class FakeCompletionClient(TextCompletionClient):
    """응답/예외를 순서대로 돌려주는 가짜 클라이언트."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, str, float]] = []

    def complete(self, system, prompt, timeout):
        self.calls.append((system, prompt, timeout))
        if not self.responses:
            raise AssertionError("예상보다 많은 모델 호출")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakePdfRenderer(PdfRenderer):
    def __init__(self):
        self.rendered: list[tuple[str, object]] = []

    def render(self, html, output_path, layout):
        self.rendered.append((html, layout))
        output_path.write_bytes(b"%PDF-1.4 fake")
        return output_path


@pytest.fixture
def sample_entry():
    return CurriculumEntry.from_dict(SAMPLE_ENTRY)


@pytest.fixture
def sample_request():
    return GenerationRequest(
        school="Kilimani Primary",
        teacher_name="Mwalimu Otieno",
        grade="Grade 4",
        learning_area="Science and Technology",
        strand="Living Things",
        substrand="Animals",
        term="Term 1",
    )


@pytest.fixture
def curriculum_file(tmp_path):
    path = tmp_path / "curriculum.json"
    path.write_text(
        json.dumps({"entries": [SAMPLE_ENTRY], "configs": [SAMPLE_CONFIG]}), encoding="utf-8"
    )
    return path


@pytest.fixture
def repository(curriculum_file):
    return JsonCurriculumRepository(curriculum_file)


@pytest.fixture
def no_sleep_policy():
    sleeps: list[float] = []
    policy = RetryPolicy(max_attempts=3, delay_sec=2, sleep=sleeps.append)
    policy.sleeps = sleeps
    return policy


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def make_pipeline(repository, no_sleep_policy, store):
    """응답 목록을 받아 가짜 클라이언트로 파이프라인을 만든다."""

    def _make(*responses):
        client = FakeCompletionClient(*responses)
        orchestrator = GenerationOrchestrator(client, repository, retry_policy=no_sleep_policy)
        pipeline = DefaultDocumentPipeline(
            orchestrator, store, pdf_renderer=FakePdfRenderer(), diagram_base_url=""
        )
        return pipeline, client

    return _make
