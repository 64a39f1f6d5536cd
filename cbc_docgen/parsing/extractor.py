"""개념 분해표 텍스트 → ConceptRecord 목록.

처리 순서:
  1. 헤더 행 탐색 (term/week + concept/learning 키워드). 없으면 모든 파이프 행이 후보
  2. 셀 분리 (trim, 빈 셀 제거, 구분선 행 건너뜀)
  3. 셀 개수에 따라 5 → 4 → 2열 배치로 단계적 매핑, 빠진 값은 앞 행/컨텍스트에서 이어받음
  4. 검증 (개념 길이, 주차 형식, 헤더/플레이스홀더 문구 거부)
  5. (주차, 정규화 개념) 기준 중복 제거 — 먼저 나온 행 유지
  6. 한 행도 못 찾으면 원문에서 "Week N" 표시와 번호 목록으로 추정

어떤 입력에도 예외를 던지지 않는다. 실패하면 빈 목록.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ..config import DEFAULT_LESSONS_PER_WEEK, DEFAULT_TERM, MIN_CONCEPT_LENGTH
from ..curriculum.models import ConceptRecord, parse_week_number
from .normalizer import is_separator_row

logger = logging.getLogger(__name__)

DENYLIST = frozenset({
    "learning concept",
    "learning concepts",
    "concept",
    "sub-strand",
    "substrand",
    "strand",
    "learners will be able to...",
    "learners will be able to",
    "to be determined",
    "not specified",
})

_TERM_CELL = re.compile(r"^term\s*\d+$", re.IGNORECASE)
_HEADER_TIME_CELL = re.compile(r"^(?:term|weeks?|wk)(?:\s*(?:no\.?|number|#))?$")
_WEEK_MARKER = re.compile(r"^\s*(?:#+\s*)?(?:\*\*)?\s*week\s*(\d{1,2})\b\s*(?:\*\*)?\s*[:.\-–]?\s*(.*)$", re.IGNORECASE)
_LIST_ITEM = re.compile(r"^\s*(\d{1,3})[.)]\s+(.+)$")
_MARKDOWN = re.compile(r"[*_`#]+")


@dataclass(frozen=True)
class ExtractionContext:
    """표에 없는 열을 채울 기본값 (원본 문서의 학기/영역/하위영역)."""

    term: str = DEFAULT_TERM
    strand: str = ""
    substrand: str = ""


def _cells(line: str, keep_empty: bool = False) -> list[str]:
    parts = line.strip().strip("|").split("|")
    cells = [_MARKDOWN.sub("", p).strip() for p in parts]
    return cells if keep_empty else [c for c in cells if c]


def _is_header(cells: list[str]) -> bool:
    """헤더 토큰(term/week/wk) 셀과 concept/learning 셀이 서로 다른 셀에 있어야 헤더."""
    lowered = [c.lower() for c in cells]
    time_cells = {i for i, c in enumerate(lowered) if _HEADER_TIME_CELL.match(c)}
    concept_cells = {i for i, c in enumerate(lowered) if "concept" in c or "learning" in c}
    return bool(time_cells) and bool(concept_cells - time_cells)


def _looks_like_week(cell: str) -> bool:
    return parse_week_number(cell) is not None


def _normalize_week(cell: str) -> str:
    number = parse_week_number(cell)
    return f"Week {number}" if number is not None else cell.strip()


class ConceptExtractor:
    """표 텍스트에서 검증된 개념 레코드를 뽑는다."""

    def __init__(
        self,
        min_concept_length: int = MIN_CONCEPT_LENGTH,
        lessons_per_week: int = DEFAULT_LESSONS_PER_WEEK,
    ):
        self._min_length = min_concept_length
        self._lessons_per_week = max(1, lessons_per_week)

    def extract(
        self,
        text: str,
        context: ExtractionContext | None = None,
        max_rows: Optional[int] = None,
    ) -> list[ConceptRecord]:
        context = context or ExtractionContext()
        try:
            records = self._from_table(text or "", context)
            if not records:
                records = self._from_heuristics(text or "", context)
                if records:
                    logger.info(f"표 행 없음, 휴리스틱으로 {len(records)}개 개념 추정")
            records = self._dedup(records)
        except Exception as e:
            logger.error(f"개념 추출 실패: {e}", exc_info=True)
            return []
        if max_rows is not None and len(records) > max_rows:
            logger.debug(f"개념 {len(records)}개 → 목표 {max_rows}개로 절단")
            records = records[:max_rows]
        return records

    def count_concept_rows(self, text: str, context: ExtractionContext | None = None) -> int:
        return len(self.extract(text, context))

    # ── 표 파싱 ──

    def _from_table(self, text: str, context: ExtractionContext) -> list[ConceptRecord]:
        lines = [l for l in text.splitlines() if "|" in l and not is_separator_row(l)]

        header: list[str] | None = None
        start = 0
        for i, line in enumerate(lines):
            if _is_header(_cells(line)):
                header = [c.lower() for c in _cells(line, keep_empty=True)]
                start = i + 1
                break

        records: list[ConceptRecord] = []
        state = {"term": context.term, "strand": context.strand, "substrand": context.substrand}
        for line in lines[start:]:
            cells = _cells(line)
            if not cells or _is_header(cells):
                continue
            mapped = None
            if header is not None:
                mapped = self._map_by_header(header, _cells(line, keep_empty=True))
            if mapped is None:
                mapped = self._map_by_count(cells)
            if mapped is None:
                continue
            record = self._to_record(mapped, state)
            if record is not None:
                records.append(record)
        return records

    @staticmethod
    def _map_by_header(header: list[str], cells: list[str]) -> Optional[dict]:
        if len(cells) != len(header):
            return None

        def find(*names) -> Optional[int]:
            for idx, name in enumerate(header):
                if any(name == n or name.startswith(n) for n in names):
                    return idx
            return None

        week_idx = find("week")
        concept_idx = next((i for i, h in enumerate(header) if "concept" in h), None)
        if week_idx is None or concept_idx is None:
            return None
        term_idx = find("term")
        sub_idx = find("sub-strand", "sub strand", "substrand")
        strand_idx = next((i for i, h in enumerate(header) if h == "strand"), None)
        return {
            "term": cells[term_idx] if term_idx is not None else "",
            "week": cells[week_idx],
            "strand": cells[strand_idx] if strand_idx is not None else "",
            "substrand": cells[sub_idx] if sub_idx is not None else "",
            "concept": cells[concept_idx],
        }

    @staticmethod
    def _map_by_count(cells: list[str]) -> Optional[dict]:
        if len(cells) >= 6 and cells[0].isdigit():
            cells = cells[1:]

        if len(cells) >= 5:
            term, week, strand, substrand, concept = cells[:5]
            return {"term": term, "week": week, "strand": strand,
                    "substrand": substrand, "concept": concept}
        if len(cells) == 4:
            if _TERM_CELL.match(cells[0]):
                return {"term": cells[0], "week": cells[1], "strand": cells[2],
                        "substrand": "", "concept": cells[3]}
            return {"term": "", "week": cells[0], "strand": cells[1],
                    "substrand": cells[2], "concept": cells[3]}
        if len(cells) in (2, 3):
            week = next((c for c in cells[:-1] if _looks_like_week(c)), None)
            if week is None:
                return None
            return {"term": "", "week": week, "strand": "", "substrand": "", "concept": cells[-1]}
        return None

    def _to_record(self, mapped: dict, state: dict) -> Optional[ConceptRecord]:
        for key in ("term", "strand", "substrand"):
            if mapped[key]:
                state[key] = mapped[key]

        week = mapped["week"]
        concept = " ".join(mapped["concept"].split())
        if not self._is_valid(week, concept):
            return None
        return ConceptRecord(
            term=state["term"],
            week=_normalize_week(week),
            strand=state["strand"],
            substrand=state["substrand"],
            concept=concept,
        )

    def _is_valid(self, week: str, concept: str) -> bool:
        if not _looks_like_week(week):
            return False
        if len(concept) <= self._min_length:
            return False
        lowered = concept.lower()
        if lowered in DENYLIST:
            return False
        if lowered.startswith("[") and lowered.endswith("]"):
            return False
        return True

    # ── 휴리스틱 ──

    def _from_heuristics(self, text: str, context: ExtractionContext) -> list[ConceptRecord]:
        records: list[ConceptRecord] = []
        current_week: Optional[int] = None
        item_index = 0

        def add(week_no: int, concept: str):
            concept = " ".join(_MARKDOWN.sub("", concept).split())
            week = f"Week {week_no}"
            if self._is_valid(week, concept):
                records.append(ConceptRecord(context.term, week, context.strand,
                                             context.substrand, concept))

        for line in text.splitlines():
            if "|" in line:
                continue
            marker = _WEEK_MARKER.match(line)
            if marker:
                current_week = int(marker.group(1))
                if marker.group(2).strip():
                    add(current_week, marker.group(2))
                continue
            item = _LIST_ITEM.match(line)
            if item:
                week_no = current_week or item_index // self._lessons_per_week + 1
                add(week_no, item.group(2))
                item_index += 1
        return records

    # ── 중복 제거 ──

    @staticmethod
    def _dedup(records: Iterable[ConceptRecord]) -> list[ConceptRecord]:
        seen: set = set()
        unique = []
        for record in records:
            if record.dedup_key in seen:
                continue
            seen.add(record.dedup_key)
            unique.append(record)
        return unique


def group_by_week(records: Iterable[ConceptRecord]) -> dict[str, list[ConceptRecord]]:
    """주차별로 묶는다. 주차 번호 순."""
    grouped: dict[str, list[ConceptRecord]] = {}
    for record in sorted(records, key=lambda r: r.week_number or 0):
        grouped.setdefault(record.week, []).append(record)
    return grouped
