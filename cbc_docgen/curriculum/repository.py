"""커리큘럼 참조 데이터 저장소 — ABC 인터페이스 + JSON 구현체 + 캐시 데코레이터."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .._resources import get_data_dir
from .cache import TTLCache
from .models import CurriculumEntry, GenerationConfig

logger = logging.getLogger(__name__)


def _norm(text: str) -> str:
    return " ".join((text or "").split()).lower()


class CurriculumRepository(ABC):
    """참조 데이터 조회 추상 인터페이스."""

    @abstractmethod
    def find_entry(
        self, grade: str, learning_area: str, strand: str, substrand: str
    ) -> Optional[CurriculumEntry]:
        """학년/교과/영역/하위영역으로 항목 조회. 없으면 None."""

    @abstractmethod
    def generation_config(self, grade: str, learning_area: str) -> Optional[GenerationConfig]:
        """학년/교과 운영 설정 조회. 없으면 None."""


class JsonCurriculumRepository(CurriculumRepository):
    """참조 JSON 파일 기반 구현체.

    JSON 형식:
      { "entries": [ {grade, learningArea, strand, substrand, slo, ...}, ... ],
        "configs": [ {grade, learningArea, lessonDuration, lessonsPerWeek, weeksPerTerm}, ... ] }
    """

    def __init__(self, path: Path | str | None = None):
        self._path = Path(path) if path else get_data_dir() / "curriculum_sample.json"
        raw = json.loads(self._path.read_text(encoding="utf-8"))
        self._entries = [CurriculumEntry.from_dict(e) for e in raw.get("entries", [])]
        self._configs = {
            (_norm(c.get("grade", "")), _norm(c.get("learningArea", ""))): GenerationConfig(
                lesson_duration=c.get("lessonDuration"),
                lessons_per_week=c.get("lessonsPerWeek"),
                weeks_per_term=c.get("weeksPerTerm"),
            )
            for c in raw.get("configs", [])
        }
        logger.debug(f"참조 데이터 로드: {self._path} (항목 {len(self._entries)}개)")

    @property
    def entries(self) -> list[CurriculumEntry]:
        return list(self._entries)

    def find_entry(self, grade, learning_area, strand, substrand):
        key = (_norm(grade), _norm(learning_area), _norm(strand), _norm(substrand))
        for entry in self._entries:
            if (_norm(entry.grade), _norm(entry.learning_area),
                    _norm(entry.strand), _norm(entry.substrand)) == key:
                return entry
        return None

    def generation_config(self, grade, learning_area):
        return self._configs.get((_norm(grade), _norm(learning_area)))


class CachedCurriculumRepository(CurriculumRepository):
    """TTL 캐시를 앞단에 둔 read-through 데코레이터."""

    def __init__(self, inner: CurriculumRepository, cache: TTLCache):
        self._inner = inner
        self._cache = cache

    @property
    def cache(self) -> TTLCache:
        return self._cache

    def find_entry(self, grade, learning_area, strand, substrand):
        key = ("entry", _norm(grade), _norm(learning_area), _norm(strand), _norm(substrand))
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"캐시 적중: {substrand}")
            return cached
        entry = self._inner.find_entry(grade, learning_area, strand, substrand)
        if entry is not None:
            self._cache.set(key, entry)
        return entry

    def generation_config(self, grade, learning_area):
        key = ("config", _norm(grade), _norm(learning_area))
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        config = self._inner.generation_config(grade, learning_area)
        if config is not None:
            self._cache.set(key, config)
        return config
