"""목표 차시 수 결정.

우선순위:
  1. 요청에 주 수와 주당 차시가 모두 있으면 weeks × lessons_per_week
  2. 참조 데이터가 총 차시(no_of_lessons)를 선언했으면 그 값
  3. 요청 → 참조 항목 → 운영 설정 → 기본값(10주, 주 5차시) 순으로 채운 weeks × lessons_per_week

0 이하 값은 어느 출처에서 왔든 없는 값으로 본다.
"""

from __future__ import annotations

import math
from typing import Optional

from ..config import DEFAULT_LESSONS_PER_WEEK, DEFAULT_WEEKS
from .models import CurriculumEntry, GenerationConfig, GenerationRequest, LessonSchedule


def _positive(value: Optional[int]) -> Optional[int]:
    return value if value is not None and value > 0 else None


def resolve_schedule(
    request: GenerationRequest,
    entry: Optional[CurriculumEntry] = None,
    config: Optional[GenerationConfig] = None,
) -> LessonSchedule:
    weeks = _positive(request.weeks)
    requested_lpw = _positive(request.lessons_per_week)
    if weeks and requested_lpw:
        return LessonSchedule(
            weeks=weeks,
            lessons_per_week=requested_lpw,
            total_lessons=weeks * requested_lpw,
            source="request",
        )

    lessons_per_week = (
        requested_lpw
        or _positive(entry.lessons_per_week if entry else None)
        or _positive(config.lessons_per_week if config else None)
        or DEFAULT_LESSONS_PER_WEEK
    )

    declared = _positive(entry.no_of_lessons if entry else None)
    if declared:
        return LessonSchedule(
            weeks=weeks or math.ceil(declared / lessons_per_week),
            lessons_per_week=lessons_per_week,
            total_lessons=declared,
            source="curriculum",
        )

    weeks = weeks or _positive(config.weeks_per_term if config else None) or DEFAULT_WEEKS
    return LessonSchedule(
        weeks=weeks,
        lessons_per_week=lessons_per_week,
        total_lessons=weeks * lessons_per_week,
        source="default",
    )
