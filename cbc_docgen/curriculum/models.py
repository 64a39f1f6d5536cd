"""커리큘럼 참조 데이터 모델.

참조 JSON(CBC 항목)에서 읽은 데이터와 생성 요청, 추출된 개념 레코드를 표현한다.
모두 불변(frozen)이며 프롬프트 빌더와 추출기, 스코어러 사이의 인터페이스 역할.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Optional

WEEK_PATTERN = re.compile(r"^(?:week|wk|w)?\s*\.?\s*(\d{1,2})\b", re.IGNORECASE)


def parse_week_number(text: str) -> Optional[int]:
    """'Week 2', 'WK 2', 'W2', '2' → 2. 주차로 읽을 수 없으면 None."""
    m = WEEK_PATTERN.match(text.strip())
    if not m:
        return None
    return int(m.group(1))


@dataclass(frozen=True)
class AssessmentCriterion:
    """평가 기준표의 한 행 (스킬별 4단계 수준)."""

    skill: str
    exceeds: str = ""
    meets: str = ""
    approaches: str = ""
    below: str = ""


@dataclass(frozen=True)
class CurriculumEntry:
    """CBC 참조 데이터의 학년/교과/영역/하위영역 한 항목. 읽기 전용."""

    grade: str
    learning_area: str
    strand: str
    substrand: str
    slo: tuple[str, ...] = ()                     # Specific Learning Outcomes
    learning_experiences: tuple[str, ...] = ()
    key_inquiry_questions: tuple[str, ...] = ()
    resources: tuple[str, ...] = ()
    assessment: tuple[AssessmentCriterion, ...] = ()
    reflection: tuple[str, ...] = ()
    core_competencies: tuple[str, ...] = ()
    values: tuple[str, ...] = ()
    no_of_lessons: Optional[int] = None           # 참조 데이터가 선언한 총 차시
    lessons_per_week: Optional[int] = None
    lesson_duration: Optional[int] = None         # 분
    age_range: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "CurriculumEntry":
        """참조 JSON 한 항목(camelCase 키)에서 생성한다."""

        def _tuple(key: str) -> tuple[str, ...]:
            value = data.get(key) or []
            if isinstance(value, str):
                value = [value]
            return tuple(str(v).strip() for v in value if str(v).strip())

        assessment = tuple(
            AssessmentCriterion(
                skill=a.get("skill", ""),
                exceeds=a.get("exceeds", ""),
                meets=a.get("meets", ""),
                approaches=a.get("approaches", ""),
                below=a.get("below", ""),
            )
            for a in data.get("assessment") or []
            if isinstance(a, dict)
        )
        return cls(
            grade=data.get("grade", ""),
            learning_area=data.get("learningArea", ""),
            strand=data.get("strand", ""),
            substrand=data.get("substrand", ""),
            slo=_tuple("slo"),
            learning_experiences=_tuple("learningExperiences"),
            key_inquiry_questions=_tuple("keyInquiryQuestions"),
            resources=_tuple("resources"),
            assessment=assessment,
            reflection=_tuple("reflection"),
            core_competencies=_tuple("coreCompetencies"),
            values=_tuple("values"),
            no_of_lessons=_optional_int(data.get("noOfLessons")),
            lessons_per_week=_optional_int(data.get("lessonsPerWeek")),
            lesson_duration=_optional_int(data.get("lessonDuration")),
            age_range=data.get("ageRange", ""),
        )


@dataclass(frozen=True)
class GenerationConfig:
    """학년/교과 단위 운영 설정 (참조 데이터 제공)."""

    lesson_duration: Optional[int] = None
    lessons_per_week: Optional[int] = None
    weeks_per_term: Optional[int] = None


@dataclass(frozen=True)
class ConceptRecord:
    """개념 분해표에서 추출한 한 행."""

    term: str
    week: str
    strand: str
    substrand: str
    concept: str

    @property
    def week_number(self) -> Optional[int]:
        return parse_week_number(self.week)

    @property
    def dedup_key(self) -> tuple[Optional[int], str]:
        """(주차 번호, 공백 축약 + 소문자 개념) — 중복 판정 키."""
        return self.week_number, " ".join(self.concept.split()).lower()


@dataclass(frozen=True)
class GenerationRequest:
    """문서 생성 요청. 빈 필드는 오케스트레이터가 안전한 기본값으로 채운다."""

    school: str = ""
    teacher_name: str = ""
    grade: str = ""
    learning_area: str = ""
    strand: str = ""
    substrand: str = ""
    term: str = ""
    weeks: Optional[int] = None
    lessons_per_week: Optional[int] = None
    concepts: tuple[ConceptRecord, ...] = ()       # 파생 요청에서만 비어 있지 않음
    lesson_number: Optional[int] = None            # Lesson Plan 전용
    week_number: Optional[int] = None
    date: str = ""
    time: str = ""
    specific_concept: str = ""

    def with_defaults(self, **kwargs) -> "GenerationRequest":
        """빈 값인 필드만 kwargs로 채운 사본을 반환한다."""
        updates = {k: v for k, v in kwargs.items() if not getattr(self, k)}
        return replace(self, **updates) if updates else self


@dataclass(frozen=True)
class LessonSchedule:
    """확정된 목표 차시 수. source는 어떤 규칙으로 정해졌는지 기록한다."""

    weeks: int
    lessons_per_week: int
    total_lessons: int
    source: str  # "request" | "curriculum" | "default"


@dataclass(frozen=True)
class VisualSpec:
    """다이어그램 생성 사양 — 라이브러리 매칭 또는 패턴 기반 합성."""

    diagram_type: str
    layout: str
    key_elements: tuple[str, ...] = ()
    requires_local_context: bool = True
    source: str = "generated"  # "library" | "generated"
    title: str = ""
    concept_focus: str = ""
    color_scheme: str = ""
    background: str = "white"
    label_style: str = "clear"
    detail_level: str = "moderate"
    max_elements: int = 6
    label_complexity: int = 4
    local_context: tuple[str, ...] = field(default_factory=tuple)


def _optional_int(value) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None
