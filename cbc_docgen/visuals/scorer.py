"""개념 시각화 적합도 점수 + 다이어그램 후보 선택.

점수 (0~100으로 자름, 기본 50):
  - 시각적 키워드 +20, 설명 동사 +10, 토론/가치 키워드 -10 (각 일치마다)
  - 교과별 보너스 (과학 관찰/실험, 사회 지도/위치, 수학 도형/그래프, 농업 작물/가축)
  - 시각화 라이브러리에 템플릿이 있으면 +30
  - 단어(5자 이상)를 공유하는 SLO 하나당 +10

선택은 세 번의 순차 패스 (안 쓴 주차 & >60 → >50 → 나머지)로 정확히 min(K, N)개.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence

from ..config import MAX_DIAGRAMS
from ..curriculum.models import ConceptRecord, CurriculumEntry, VisualSpec
from .library import GRADE_COMPLEXITY, VisualLibrary, grade_level

logger = logging.getLogger(__name__)

BASE_SCORE = 50

HIGH_VISUAL_KEYWORDS = (
    "diagram", "map", "structure", "parts", "cycle", "process", "system",
    "comparison", "types", "classification", "stages", "growth", "development",
    "plant", "animal", "body", "organ", "cell", "experiment", "apparatus",
    "ecosystem", "food chain", "life cycle", "water cycle", "energy",
    "weather", "climate", "seasons", "county", "counties", "location",
    "historical sources", "preservation", "timeline", "government structure",
    "shape", "angle", "measurement", "graph", "chart", "pattern", "symmetry",
    "farm", "crop", "livestock", "tools", "planting", "harvest",
    "nutrition", "food groups", "balanced diet", "kitchen",
    "computer parts", "keyboard", "hardware", "software",
)
MEDIUM_VISUAL_KEYWORDS = (
    "describe", "identify", "explain", "demonstrate", "show", "illustrate",
    "elements", "components", "features", "characteristics", "factors",
    "methods", "techniques", "steps", "procedures",
)
LOW_VISUAL_KEYWORDS = (
    "discuss", "debate", "argue", "opinion", "perspective", "viewpoint",
    "appreciate", "value", "recognize significance", "understand importance",
)

# 교과 키워드 → [(패턴, 가감점)]
SUBJECT_BONUSES: dict[str, list[tuple[str, int]]] = {
    "science": [(r"\b(observe|experiment|investigate|examine)\b", 15),
                (r"using apparatus", 25)],
    "social": [(r"\b(map|location|weather|climate|historical sources)\b", 20),
               (r"\b(government|structure|organization)\b", 15)],
    "math": [(r"\b(shape|angle|measure|graph|chart|pattern)\b", 20),
             (r"\b(calculate|solve|equation)\b", -5)],
    "agriculture": [(r"\b(crop|plant|livestock|farm|tool|soil)\b", 20)],
}

# 교과 키워드 → [(개념 패턴, 다이어그램 타입, 레이아웃, 핵심 요소)]
SPEC_PATTERNS: dict[str, list[tuple[str, str, str, tuple[str, ...]]]] = {
    "science": [
        (r"\b(plant|crop|vegetation|tree)\b", "botanical_diagram", "labeled_specimen",
         ("roots", "stem", "leaves", "flowers/fruits", "labels with functions")),
        (r"\b(animal|mammal|bird|insect)\b", "zoological_diagram", "labeled_specimen",
         ("body parts", "habitat indication", "diet indicators", "labels")),
        (r"\b(cycle|process|stages)\b", "process_cycle", "circular_flow",
         ("sequential stages", "arrows showing flow", "stage labels", "Kenyan context")),
        (r"\b(experiment|apparatus|equipment)\b", "experimental_setup", "labeled_equipment",
         ("apparatus pieces", "safety equipment", "procedure indicators", "labels")),
    ],
    "social": [
        (r"\b(map|location|geography|county|counties)\b", "geographical_map", "map_with_legend",
         ("map boundaries", "labels", "compass rose", "scale", "legend", "key features")),
        (r"\b(weather|climate|seasons)\b", "meteorological_diagram", "instrument_showcase",
         ("weather instruments", "measurement indicators", "Kenyan climate zones", "labels")),
        (r"\b(historical|source|artifact|preservation)\b", "historical_classification",
         "categorized_sections",
         ("primary sources", "secondary sources", "Kenyan examples", "category labels")),
        (r"\b(government|structure|organization|system)\b", "organizational_chart",
         "hierarchical_structure",
         ("levels of organization", "connecting lines", "role labels", "Kenyan context")),
        (r"\b(timeline|history|chronology)\b", "historical_timeline", "chronological_sequence",
         ("time periods", "key events", "dates", "Kenyan historical markers")),
    ],
    "math": [
        (r"\b(shape|geometry|angle|triangle|square|circle)\b", "geometric_diagram",
         "geometric_showcase",
         ("shapes with measurements", "angles marked", "properties labeled", "examples")),
        (r"\b(graph|chart|data|statistics)\b", "data_visualization", "graph_or_chart",
         ("axes with labels", "data points", "title", "scale", "Kenyan data context")),
        (r"\b(fraction|decimal|percentage)\b", "fraction_diagram", "partitioned_visuals",
         ("whole divided into parts", "shaded sections", "fraction notation", "examples")),
        (r"\b(measurement|length|weight|volume)\b", "measurement_diagram", "tool_and_examples",
         ("measuring tools", "units labeled", "Kenyan objects measured", "scale indicators")),
    ],
    "agriculture": [
        (r"\b(crop|plant|maize|bean|vegetable)\b", "crop_diagram", "growth_stages",
         ("planting to harvest stages", "Kenyan crops", "timeline", "labels")),
        (r"\b(farm|layout|shamba)\b", "farm_layout", "aerial_view",
         ("farm sections", "crops/livestock areas", "Kenyan farm context", "labels")),
        (r"\b(tool|equipment|jembe|panga)\b", "tool_showcase", "grid_of_tools",
         ("farm tools illustrated", "names in English/Swahili", "usage indicators", "labels")),
        (r"\b(livestock|animal|chicken|cow|goat)\b", "livestock_diagram", "animal_with_features",
         ("animal illustration", "products from animal", "care requirements", "labels")),
    ],
    "home science": [
        (r"\b(food|nutrition|balanced diet|meal)\b", "nutrition_diagram", "food_plate_or_pyramid",
         ("food groups", "Kenyan foods", "portions", "balanced meal example", "labels")),
        (r"\b(hygiene|cleanliness|sanitation)\b", "hygiene_steps", "step_by_step",
         ("hygiene steps illustrated", "Kenyan context", "safety symbols", "labels")),
    ],
    "ict": [
        (r"\b(parts|components|hardware)\b", "computer_diagram", "labeled_device",
         ("computer parts", "input/output indicators", "labels with functions", "Kenyan school lab")),
        (r"\b(internet|safety|online)\b", "safety_infographic", "do_and_dont",
         ("safety rules", "icons", "Kenyan student context", "clear warnings")),
    ],
}
# 교과명 별칭 (예: "Computer Studies" → ict, "Nutrition" → home science)
SUBJECT_ALIASES = {"computer": "ict", "nutrition": "home science"}

_CAPTION_VERB = re.compile(
    r"^(describe|explain|identify|analy[sz]e|examine|demonstrate|show|illustrate|observe)\s+(and\s+\w+\s+)?",
    re.IGNORECASE,
)


def _contains(text: str, keyword: str) -> bool:
    return re.search(r"\b" + re.escape(keyword), text) is not None


def _subject_keys(subject: str) -> list[str]:
    lowered = (subject or "").lower()
    keys = [k for k in SPEC_PATTERNS if k in lowered]
    keys += [v for k, v in SUBJECT_ALIASES.items() if k in lowered and v not in keys]
    return keys


@dataclass(frozen=True)
class ScoredConcept:
    record: ConceptRecord
    score: int


@dataclass(frozen=True)
class SelectedConcept:
    """다이어그램으로 만들 개념 + 사양 + 캡션."""

    record: ConceptRecord
    score: int
    spec: VisualSpec
    caption: str


class ConceptScorer:
    def __init__(self, library: VisualLibrary | None = None):
        self._library = library if library is not None else VisualLibrary.load()

    @property
    def library(self) -> VisualLibrary:
        return self._library

    def score(self, concept: str, subject: str, entry: CurriculumEntry | None = None) -> int:
        text = (concept or "").lower()
        subject_l = (subject or "").lower()
        score = BASE_SCORE

        score += 20 * sum(1 for kw in HIGH_VISUAL_KEYWORDS if _contains(text, kw))
        score += 10 * sum(1 for kw in MEDIUM_VISUAL_KEYWORDS if _contains(text, kw))
        score -= 10 * sum(1 for kw in LOW_VISUAL_KEYWORDS if _contains(text, kw))

        for key, rules in SUBJECT_BONUSES.items():
            if key in subject_l:
                for pattern, delta in rules:
                    if re.search(pattern, text):
                        score += delta

        if self._library.has_template(concept, subject):
            score += 30

        if entry is not None and entry.slo:
            words = [w for w in text.split() if len(w) > 4]
            related = sum(1 for slo in entry.slo if any(w in slo.lower() for w in words))
            score += 10 * related

        return max(0, min(100, score))


class ConceptSelector:
    """점수 순으로 정렬한 뒤 주차가 고르게 퍼지도록 K개를 고른다."""

    def __init__(self, scorer: ConceptScorer | None = None, max_diagrams: int = MAX_DIAGRAMS):
        self._scorer = scorer or ConceptScorer()
        self._max = max_diagrams

    def rank(
        self, records: Iterable[ConceptRecord], subject: str, entry: CurriculumEntry | None = None
    ) -> list[ScoredConcept]:
        scored = [ScoredConcept(r, self._scorer.score(r.concept, subject, entry)) for r in records]
        return sorted(scored, key=lambda s: s.score, reverse=True)

    def select(
        self,
        records: Sequence[ConceptRecord],
        subject: str,
        grade: str = "",
        entry: CurriculumEntry | None = None,
        k: Optional[int] = None,
    ) -> list[SelectedConcept]:
        k = self._max if k is None else k
        ranked = self.rank(records, subject, entry)
        picked = self._three_pass(ranked, k)
        logger.info(f"다이어그램 후보 {len(ranked)}개 중 {len(picked)}개 선택")
        return [
            SelectedConcept(
                record=s.record,
                score=s.score,
                spec=self.visual_spec(s.record.concept, subject, grade),
                caption=format_caption(s.record, i),
            )
            for i, s in enumerate(picked)
        ]

    @staticmethod
    def _three_pass(ranked: list[ScoredConcept], k: int) -> list[ScoredConcept]:
        selected: list[ScoredConcept] = []
        used: set[int] = set()
        weeks_used: set = set()

        for idx, item in enumerate(ranked):
            if len(selected) >= k:
                break
            week = item.record.week_number
            if week not in weeks_used and item.score > 60:
                selected.append(item)
                used.add(idx)
                weeks_used.add(week)

        for idx, item in enumerate(ranked):
            if len(selected) >= k:
                break
            if idx not in used and item.score > 50:
                selected.append(item)
                used.add(idx)

        for idx, item in enumerate(ranked):
            if len(selected) >= k:
                break
            if idx not in used:
                selected.append(item)
                used.add(idx)

        return selected

    def visual_spec(self, concept: str, subject: str, grade: str) -> VisualSpec:
        spec = self._scorer.library.lookup(concept, subject, grade)
        if spec is not None:
            return replace(spec, concept_focus=concept)
        return synthesize_spec(concept, subject, grade)


def synthesize_spec(concept: str, subject: str, grade: str = "") -> VisualSpec:
    """라이브러리에 없는 개념의 사양을 교과별 패턴으로 만든다."""
    text = (concept or "").lower()
    diagram_type, layout, elements = "educational_diagram", "centered_with_labels", (
        "main concept illustration", "labels", "Kenyan context", "simple arrows")
    for key in _subject_keys(subject):
        match = next(((t, l, e) for p, t, l, e in SPEC_PATTERNS[key] if re.search(p, text)), None)
        if match:
            diagram_type, layout, elements = match
            break

    max_elements, label_words, detail = GRADE_COMPLEXITY[grade_level(grade)]
    return VisualSpec(
        diagram_type=diagram_type,
        layout=layout,
        key_elements=tuple(elements)[:max_elements],
        requires_local_context=True,
        source="generated",
        title=concept,
        concept_focus=concept,
        detail_level=detail,
        max_elements=max_elements,
        label_complexity=label_words,
    )


def format_caption(record: ConceptRecord, index: int) -> str:
    """'Figure 1: The life cycle of a butterfly (Week 3)'. 80자 초과는 줄인다."""
    text = _CAPTION_VERB.sub("", record.concept.strip()).strip() or record.concept.strip()
    text = text[:1].upper() + text[1:]
    if len(text) > 80:
        text = text[:77] + "..."
    return f"Figure {index + 1}: {text} ({record.week})"


def build_diagram_prompt(
    selected: SelectedConcept,
    grade: str,
    subject: str,
    strand: str = "",
    substrand: str = "",
) -> str:
    """이미지 생성 서비스에 넘길 다이어그램 프롬프트."""
    spec = selected.spec
    record = selected.record
    elements = "\n".join(f"{i}. {e}" for i, e in enumerate(spec.key_elements, 1))
    context = f"""Create a professional educational diagram for the Kenyan Competency Based Curriculum (CBC).

## LESSON CONTEXT
- Week: {record.week}
- Learning Concept: "{record.concept}"
- Grade: {grade}
- Subject: {subject}
- Strand: {strand}
- Sub-strand: {substrand}
"""
    if spec.source == "library":
        body = f"""
## PREDEFINED VISUAL SPECIFICATION
**Diagram Type:** {spec.diagram_type}
**Title:** {spec.title}
**Layout Style:** {spec.layout}

**Key Elements to Include:**
{elements}

**Kenyan Context:** {', '.join(spec.local_context) or 'Kenyan classroom'}
**Color Scheme:** {spec.color_scheme}
**Background:** {spec.background}
**Label Style:** {spec.label_style}
"""
    else:
        body = f"""
## VISUAL SPECIFICATION
**Diagram Type:** {spec.diagram_type}
**Layout Style:** {spec.layout}
**Concept Focus:** {spec.concept_focus}

**Key Visual Elements:**
{elements}

## KENYAN CONTEXT REQUIREMENTS
- Use recognizable Kenyan examples and settings
- Include Swahili terms where culturally appropriate
"""
    return context + body + f"""
## GRADE-SPECIFIC ADAPTATIONS
- Detail Level: {spec.detail_level}
- Maximum Elements: {spec.max_elements}
- Label Complexity: {spec.label_complexity} words maximum per label

## REQUIREMENTS
- The diagram MUST directly illustrate: "{record.concept}"
- Follow the {spec.layout} layout
- White background, high contrast, printable
"""
