"""참조 데이터 품질 평가 + SLO 핵심어 추출."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..curriculum.models import CurriculumEntry
from ..prompts.base import split_combined

_SLO_VERBS = re.compile(
    r"(describe|explain|identify|analy[sz]e|compare|contrast|classify|demonstrate|understand|learn about)\s+"
)
_NON_WORD = re.compile(r"[^a-z0-9\s]")


@dataclass(frozen=True)
class QualityReport:
    score: int
    rating: str
    issues: list[str] = field(default_factory=list)
    key_concepts: list[str] = field(default_factory=list)


def rate(score: int) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


def assess_curriculum_quality(entry: CurriculumEntry) -> QualityReport:
    """100점에서 빠진 항목마다 감점."""
    score = 100
    issues: list[str] = []

    if not entry.slo:
        score -= 30
        issues.append("Missing specific learning outcomes")
    elif any(len(slo) <= 10 for slo in entry.slo):
        score -= 10
        issues.append("Some learning outcomes are too short or invalid")

    if not entry.key_inquiry_questions:
        score -= 20
        issues.append("Missing key inquiry questions")
    if not entry.learning_experiences:
        score -= 20
        issues.append("Missing learning experiences")
    if not entry.resources:
        score -= 10
        issues.append("Missing learning resources")
    if not entry.assessment:
        score -= 10
        issues.append("Missing assessment criteria")

    score = max(0, score)
    return QualityReport(
        score=score, rating=rate(score), issues=issues,
        key_concepts=extract_key_concepts(split_combined(entry.slo)),
    )


def extract_key_concepts(slos) -> list[str]:
    """SLO마다 동사를 빼고 4자 넘는 단어를 최대 5개씩, 등장 순서대로 중복 없이."""
    seen: dict[str, None] = {}
    for slo in slos:
        cleaned = _NON_WORD.sub("", _SLO_VERBS.sub("", slo.lower())).strip()
        words = [w for w in cleaned.split() if len(w) > 3][:5]
        for word in words:
            seen.setdefault(word, None)
    return list(seen)
