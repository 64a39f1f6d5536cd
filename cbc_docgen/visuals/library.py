"""CBC 개념 시각화 라이브러리 — 자주 가르치는 개념의 사전 정의 다이어그램 사양.

data/visual_library.json 에서 (교과, 개념) 키로 사양을 읽고,
학년 단계에 맞춰 요소 수/라벨 길이/상세도를 조정한다.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from .._resources import get_data_dir
from ..curriculum.models import VisualSpec

# 학년 단계 → (최대 요소 수, 라벨 단어 수, 상세도)
GRADE_COMPLEXITY = {
    "pp1": (3, 1, "minimal"),
    "pp2": (4, 2, "simple"),
    "lower_primary": (5, 3, "basic"),
    "upper_primary": (7, 5, "moderate"),
    "junior_secondary": (10, 8, "detailed"),
    "general": (6, 4, "moderate"),
}

_GRADE_NUMBER = re.compile(r"grade\s*(\d+)", re.IGNORECASE)


def grade_level(grade: str) -> str:
    """'PP1' → pp1, 'Grade 2' → lower_primary, 'Grade 5' → upper_primary, 'Grade 8' → junior_secondary."""
    lowered = (grade or "").lower()
    if "pp1" in lowered:
        return "pp1"
    if "pp2" in lowered:
        return "pp2"
    m = _GRADE_NUMBER.search(lowered)
    if m:
        number = int(m.group(1))
        if number <= 3:
            return "lower_primary"
        if number <= 6:
            return "upper_primary"
        if number <= 9:
            return "junior_secondary"
    return "general"


@dataclass(frozen=True)
class LibraryEntry:
    subject: str
    concept: str
    spec: VisualSpec


class VisualLibrary:
    """사전 정의 사양 조회. 정확 일치 → 부분 일치(교과·개념 상호 포함) 순."""

    def __init__(self, entries: list[LibraryEntry]):
        self._entries = entries
        self._by_key = {(e.subject, e.concept): e for e in entries}

    @classmethod
    def load(cls, path: Path | str | None = None) -> "VisualLibrary":
        path = Path(path) if path else get_data_dir() / "visual_library.json"
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        entries = []
        for item in raw.get("concepts", []):
            spec = VisualSpec(
                diagram_type=item["visualType"],
                layout=item["layout"],
                key_elements=tuple(item.get("elements", [])),
                requires_local_context=True,
                source="library",
                title=item.get("title", ""),
                concept_focus=item["concept"],
                color_scheme=item.get("colorScheme", ""),
                background=item.get("background", "white"),
                label_style=item.get("labelStyle", "clear"),
                local_context=(item["kenyanContext"],) if item.get("kenyanContext") else (),
            )
            entries.append(LibraryEntry(item["subject"].lower(), item["concept"].lower(), spec))
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, concept: str, subject: str) -> Optional[VisualSpec]:
        """학년 조정 전의 원본 사양."""
        concept_l = (concept or "").lower().strip()
        subject_l = (subject or "").lower().strip()
        if not concept_l or not subject_l:
            return None

        exact = self._by_key.get((subject_l, concept_l))
        if exact:
            return exact.spec

        for entry in self._entries:
            if entry.subject in subject_l or subject_l in entry.subject:
                if entry.concept in concept_l or concept_l in entry.concept:
                    return entry.spec
        return None

    def lookup(self, concept: str, subject: str, grade: str) -> Optional[VisualSpec]:
        spec = self.find(concept, subject)
        if spec is None:
            return None
        return adapt_to_grade(spec, grade)

    def has_template(self, concept: str, subject: str) -> bool:
        return self.find(concept, subject) is not None

    def concepts_for_subject(self, subject: str) -> list[str]:
        subject_l = (subject or "").lower()
        return [e.concept for e in self._entries
                if e.subject in subject_l or subject_l in e.subject]


def adapt_to_grade(spec: VisualSpec, grade: str) -> VisualSpec:
    max_elements, label_words, detail = GRADE_COMPLEXITY[grade_level(grade)]
    return replace(
        spec,
        key_elements=spec.key_elements[:max_elements],
        max_elements=max_elements,
        label_complexity=label_words,
        detail_level=detail,
    )
