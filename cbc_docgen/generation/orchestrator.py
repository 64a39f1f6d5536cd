"""생성 오케스트레이터 — 요청 검증 → 프롬프트 → 모델 호출(재시도) → 성공 또는 폴백.

상태 흐름:
  VALIDATE → BUILD_PROMPT → CALL_MODEL → {SUCCESS, RETRY, FALLBACK}

호출자는 항상 콘텐츠를 받는다. 재시도가 모두 실패하면 참조 데이터로 만든
폴백 콘텐츠와 degraded=True가 돌아간다.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from ..config import CURRICULUM_CACHE_TTL_SEC, DEFAULT_TERM, MIN_RESPONSE_CHARS, MODEL_TIMEOUT_SEC
from ..curriculum.cache import TTLCache
from ..curriculum.models import CurriculumEntry, GenerationRequest, LessonSchedule
from ..curriculum.repository import CachedCurriculumRepository, CurriculumRepository
from ..curriculum.schedule import resolve_schedule
from ..document.models import DocumentType
from ..errors import (
    ModelEmptyResponseError,
    ModelError,
    ModelRetryExhaustedError,
    ModelServiceError,
    RequestValidationError,
)
from ..llm.client import TextCompletionClient
from ..prompts.registry import PromptBuilderRegistry
from .fallback import build_fallback
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationOutcome:
    """한 번의 생성 결과."""

    doc_type: DocumentType
    content: str
    request: GenerationRequest        # 기본값이 채워진 요청
    entry: CurriculumEntry
    schedule: LessonSchedule
    attempts: int
    elapsed_ms: int
    degraded: bool = False
    failure_reason: Optional[str] = None


class GenerationOrchestrator:
    """모델 호출을 재시도/폴백 정책으로 감싼다. 커리큘럼 캐시도 여기서 소유한다."""

    def __init__(
        self,
        client: TextCompletionClient,
        repository: CurriculumRepository,
        registry: PromptBuilderRegistry | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout_sec: float = MODEL_TIMEOUT_SEC,
        min_response_chars: int = MIN_RESPONSE_CHARS,
        cache_ttl_sec: float = CURRICULUM_CACHE_TTL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        if isinstance(repository, CachedCurriculumRepository):
            self._repository = repository
        else:
            self._repository = CachedCurriculumRepository(
                repository, TTLCache(cache_ttl_sec, clock=clock)
            )
        self._registry = registry or PromptBuilderRegistry()
        self._retry = retry_policy or RetryPolicy()
        self._timeout = timeout_sec
        self._min_chars = min_response_chars
        self._clock = clock

    @property
    def repository(self) -> CachedCurriculumRepository:
        return self._repository

    def clear_cache(self) -> None:
        self._repository.cache.clear()

    # ── VALIDATE ──

    def lookup_entry(self, request: GenerationRequest) -> CurriculumEntry:
        """참조 항목 조회. 없으면 요청 필드만으로 빈 항목을 만든다."""
        entry = self._repository.find_entry(
            request.grade, request.learning_area, request.strand, request.substrand
        )
        if entry is None:
            logger.warning(
                f"참조 항목 없음, 빈 항목으로 진행: {request.grade} / {request.learning_area} "
                f"/ {request.strand} / {request.substrand}"
            )
            entry = CurriculumEntry(
                grade=request.grade,
                learning_area=request.learning_area,
                strand=request.strand,
                substrand=request.substrand,
            )
        return entry

    def sanitize_request(
        self, request: GenerationRequest | None, entry: CurriculumEntry | None
    ) -> GenerationRequest:
        if request is None:
            raise RequestValidationError("생성 요청이 없습니다.")
        # 0 이하 숫자 필드는 없는 값으로 본다
        invalid = {
            name: None
            for name in ("weeks", "lessons_per_week", "lesson_number", "week_number")
            if getattr(request, name) is not None and getattr(request, name) <= 0
        }
        if invalid:
            logger.warning(f"잘못된 숫자 필드 무시: {', '.join(invalid)}")
            request = replace(request, **invalid)
        return request.with_defaults(
            grade=(entry.grade if entry else "") or "Grade 7",
            learning_area=(entry.learning_area if entry else "") or "General",
            strand=(entry.strand if entry else "") or "General Strand",
            substrand=(entry.substrand if entry else "") or "General Substrand",
            term=DEFAULT_TERM,
            school="Kenyan School",
            teacher_name="Teacher",
        )

    # ── 전체 흐름 ──

    def generate(
        self,
        doc_type: DocumentType | str,
        request: GenerationRequest | None,
        entry: CurriculumEntry | None = None,
    ) -> GenerationOutcome:
        if request is None:
            raise RequestValidationError("생성 요청이 없습니다.")
        doc_type = DocumentType.parse(doc_type)
        start = self._clock()

        if entry is None:
            entry = self.lookup_entry(request)
        request = self.sanitize_request(request, entry)
        config = self._repository.generation_config(request.grade, request.learning_area)
        schedule = resolve_schedule(request, entry, config)
        request = request.with_defaults(
            weeks=schedule.weeks, lessons_per_week=schedule.lessons_per_week
        )

        # BUILD_PROMPT
        builder = self._registry.get(doc_type)
        prompt = builder.build(request, entry, schedule)
        system = builder.system_message()
        logger.info(
            f"[{doc_type.value}] 생성 시작: {request.grade} {request.learning_area} / "
            f"{request.substrand} (목표 {schedule.total_lessons}차시, {schedule.source})"
        )

        # CALL_MODEL
        try:
            content, attempts = self._retry.run(
                lambda: self._call_model(system, prompt), label=doc_type.value
            )
        except ModelRetryExhaustedError as e:
            reason = str(e.last_error) if e.last_error else str(e)
            logger.error(f"[{doc_type.value}] 폴백 콘텐츠로 대체: {reason}")
            return GenerationOutcome(
                doc_type=doc_type,
                content=build_fallback(doc_type, request, entry, schedule, reason),
                request=request,
                entry=entry,
                schedule=schedule,
                attempts=e.attempts,
                elapsed_ms=self._elapsed_ms(start),
                degraded=True,
                failure_reason=reason,
            )

        logger.info(f"[{doc_type.value}] 생성 완료: {len(content)}자, {attempts}회 시도")
        return GenerationOutcome(
            doc_type=doc_type,
            content=content,
            request=request,
            entry=entry,
            schedule=schedule,
            attempts=attempts,
            elapsed_ms=self._elapsed_ms(start),
        )

    def _call_model(self, system: str, prompt: str) -> str:
        try:
            text = self._client.complete(system, prompt, self._timeout)
        except ModelError:
            raise
        except Exception as e:
            # ModelError 밖의 예외도 재시도 대상으로 변환
            raise ModelServiceError(f"모델 클라이언트 오류: {type(e).__name__}: {e}") from e
        if not text or len(text.strip()) < self._min_chars:
            raise ModelEmptyResponseError(
                f"응답이 너무 짧습니다 ({len((text or '').strip())}자 < {self._min_chars}자)"
            )
        return text

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)
