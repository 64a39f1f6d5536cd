"""모델 호출이 모두 실패했을 때 참조 데이터만으로 만드는 결정적 폴백 콘텐츠.

표 형식 문서는 목표 차시 수만큼 행을 채워서, 이후 개념 추출과
렌더링이 폴백 문서에서도 그대로 동작하게 한다.
"""

from __future__ import annotations

import math

from ..curriculum.models import CurriculumEntry, GenerationRequest, LessonSchedule
from ..document.models import DocumentType
from ..prompts.base import split_combined
from ..prompts.builders import BREAKDOWN_COLUMNS, SCHEMES_COLUMNS, header_row, separator_row

FALLBACK_NOTICE = (
    "*Note: This is fallback content generated from curriculum data because the "
    "generation service was unavailable. Please try regenerating this document.*"
)


def build_fallback(
    doc_type: DocumentType,
    request: GenerationRequest,
    entry: CurriculumEntry,
    schedule: LessonSchedule,
    reason: str = "",
) -> str:
    if doc_type is DocumentType.LESSON_CONCEPT_BREAKDOWN:
        body = _breakdown_table(request, entry, schedule)
    elif doc_type is DocumentType.SCHEMES_OF_WORK:
        body = _schemes_table(request, entry, schedule)
    else:
        body = _markdown_body(doc_type, request, entry, reason)
    return f"# {doc_type.value}: {request.substrand}\n\n{_info(request)}\n\n{body}\n\n---\n{FALLBACK_NOTICE}\n"


def _info(request: GenerationRequest) -> str:
    return "\n".join([
        "## Document Information",
        f"- Grade: {request.grade}",
        f"- Subject: {request.learning_area}",
        f"- Strand: {request.strand}",
        f"- Sub-strand: {request.substrand}",
        f"- Term: {request.term}",
        f"- School: {request.school}",
        f"- Teacher: {request.teacher_name}",
    ])


def _concepts(request: GenerationRequest, entry: CurriculumEntry, total: int) -> list[str]:
    """SLO를 순환하며 total개의 서로 다른 개념 문장을 만든다."""
    slos = split_combined(entry.slo) or [f"Introduction to {request.substrand}"]
    concepts = []
    for i in range(total):
        slo = slos[i % len(slos)]
        cycle = i // len(slos)
        concepts.append(slo if cycle == 0 else f"{slo} (review {cycle})")
    return [
        c if len(c) > 10 else f"{c}: {request.substrand} lesson {i + 1}"
        for i, c in enumerate(concepts)
    ]


def _breakdown_table(request, entry, schedule) -> str:
    rows = [header_row(BREAKDOWN_COLUMNS), separator_row(BREAKDOWN_COLUMNS)]
    for i, concept in enumerate(_concepts(request, entry, schedule.total_lessons)):
        week = i // schedule.lessons_per_week + 1
        rows.append(
            f"| {request.term} | Week {week} | {request.strand} | {request.substrand} | {concept} |"
        )
    return "\n".join(rows)


def _schemes_table(request, entry, schedule) -> str:
    slos = split_combined(entry.slo) or [f"Introduction to {request.substrand}"]
    experiences = split_combined(entry.learning_experiences) or ["Guided discussion and practice"]
    questions = split_combined(entry.key_inquiry_questions) or [f"What is {request.substrand}?"]
    resources = ", ".join(entry.resources[:2]) or "Textbooks, charts"
    per_slo = math.ceil(schedule.total_lessons / len(slos))

    rows = [header_row(SCHEMES_COLUMNS), separator_row(SCHEMES_COLUMNS)]
    for i in range(schedule.total_lessons):
        week = i // schedule.lessons_per_week + 1
        slo_idx = min(i // per_slo, len(slos) - 1)
        slo = slos[slo_idx]
        rows.append(
            f"| Week {week} | Lesson {i + 1} | {request.strand} | {request.substrand} "
            f"| ({chr(97 + slo_idx)}) {slo} | {experiences[i % len(experiences)]} "
            f"| {questions[i % len(questions)]} | {resources} | Observation "
            f"| Were learners able to {slo[:1].lower() + slo[1:]}? |"
        )
    return "\n".join(rows)


def _markdown_body(doc_type, request, entry, reason) -> str:
    slos = split_combined(entry.slo)
    sections = [
        "## Learning Outcomes",
        "\n".join(f"{i}. {s}" for i, s in enumerate(slos, 1))
        or "1. Understand key concepts\n2. Apply knowledge to real situations",
    ]
    questions = split_combined(entry.key_inquiry_questions)
    if questions:
        sections += ["## Key Inquiry Questions", "\n".join(f"- {q}" for q in questions)]
    if entry.learning_experiences:
        sections += ["## Learning Experiences",
                     "\n".join(f"- {e}" for e in split_combined(entry.learning_experiences))]
    if entry.resources:
        sections += ["## Learning Resources", "\n".join(f"- {r}" for r in entry.resources)]
    if entry.assessment:
        sections += ["## Assessment", "\n".join(f"- {a.skill}" for a in entry.assessment if a.skill)]
    if doc_type is DocumentType.LESSON_NOTES and request.concepts:
        sections += ["## Concepts by Week",
                     "\n".join(f"- {c.week}: {c.concept}" for c in request.concepts)]
    sections += [
        "## Introduction",
        f"This document provides lesson content for {request.substrand} in "
        f"{request.grade} {request.learning_area}, aligned with the Kenyan Competency Based Curriculum.",
    ]
    if reason:
        sections += ["## Key Content",
                     f"Due to a technical issue ({reason}), the full generated content is unavailable."]
    return "\n\n".join(sections)
