"""렌더링용 표 재구성 — strict → tolerant → generic 순서의 파서 체인.

각 단계는 (비어 있을 수 있는) 행 목록만 돌려주고 예외를 던지지 않는다.
앞 단계가 0행일 때만 다음 단계로 넘어가며, 세 단계 모두 0행이면 RenderParseExhausted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..document.models import DocumentType
from ..errors import RenderParseExhausted
from ..parsing.normalizer import TableNormalizer, is_separator_row
from ..prompts.builders import BREAKDOWN_COLUMNS, SCHEMES_COLUMNS

logger = logging.getLogger(__name__)

_PLACEHOLDER_SLO = "learners will be able to..."


@dataclass(frozen=True)
class ColumnLayout:
    """페이지 규격 + 열 너비(%)."""

    page_format: str
    landscape: bool
    font_size: str
    body_padding: str
    widths: tuple[int, ...] = ()


WIDE_BREAKDOWN = ColumnLayout("A3", True, "8pt", "15mm", (8, 8, 18, 22, 44))
WIDE_SCHEMES = ColumnLayout("A3", True, "8pt", "15mm", (5, 6, 8, 9, 16, 16, 12, 11, 8, 9))
PORTRAIT = ColumnLayout("A4", False, "10pt", "20mm")


def layout_for(doc_type: DocumentType) -> ColumnLayout:
    if doc_type is DocumentType.LESSON_CONCEPT_BREAKDOWN:
        return WIDE_BREAKDOWN
    if doc_type is DocumentType.SCHEMES_OF_WORK:
        return WIDE_SCHEMES
    return PORTRAIT


@dataclass
class TableData:
    headers: list[str]
    rows: list[list[str]] = field(default_factory=list)
    stage: str = ""        # strict | tolerant | generic

    def __len__(self) -> int:
        return len(self.rows)


def split_cells(line: str) -> list[str]:
    """앞뒤 파이프를 떼고 나눈 셀 (빈 셀 유지)."""
    return [c.strip() for c in line.strip().strip("|").split("|")]


def _pipe_lines(content: str) -> list[str]:
    return [l.strip() for l in content.splitlines()
            if "|" in l and not is_separator_row(l)]


def _has_all(cells: list[str], *keywords: str) -> bool:
    lowered = " | ".join(c.lower() for c in cells)
    return all(k in lowered for k in keywords)


# ── Lesson Concept Breakdown ──────────────────────────────────────────

def _breakdown_strict(content: str) -> list[list[str]]:
    lines = _pipe_lines(content)
    header_idx = next((i for i, l in enumerate(lines)
                       if _has_all(split_cells(l), "term", "week", "learning concept")), None)
    if header_idx is None:
        return []
    rows = []
    for line in lines[header_idx + 1:]:
        if not (line.startswith("|") and line.endswith("|")):
            continue
        cells = split_cells(line)
        if len(cells) == 6 and cells[0].isdigit():
            cells = cells[1:]
        if len(cells) != 5 or len(cells[4]) <= 10:
            continue
        rows.append(cells)
    return rows


def _breakdown_tolerant(content: str) -> list[list[str]]:
    rows = []
    prev = ["", "", "", ""]
    for line in _pipe_lines(content):
        cells = [c for c in split_cells(line)]
        if len(cells) >= 6 and cells[0].isdigit():
            cells = cells[1:]
        if len(cells) < 4 or cells[1].lower() == "week":
            continue
        cells = (cells + [""] * 5)[:5] if len(cells) < 5 else cells[:4] + [" ".join(cells[4:])]
        if not cells[4]:
            continue
        for i in range(4):
            if not cells[i]:
                cells[i] = prev[i]
        prev = cells[:4]
        rows.append(cells)
    return rows


# ── Schemes of Work ───────────────────────────────────────────────────

def _schemes_strict(content: str) -> list[list[str]]:
    lines = _pipe_lines(content)
    header_idx = next((i for i, l in enumerate(lines)
                       if _has_all(split_cells(l), "week", "lesson", "learning outcomes")), None)
    if header_idx is None:
        return []
    rows = []
    for line in lines[header_idx + 1:]:
        cells = split_cells(line)
        if len(cells) != 10 or cells[0].lower() == "week":
            continue
        slo = cells[4]
        if len(slo) <= 20 or slo.lower().startswith(_PLACEHOLDER_SLO):
            continue
        rows.append(cells)
    return rows


def _schemes_tolerant(content: str) -> list[list[str]]:
    rows = []
    prev_week, prev_strand, prev_sub = "", "", ""
    for line in _pipe_lines(content):
        cells = split_cells(line)
        if len(cells) < 6 or cells[0].lower() == "week":
            continue
        cells = (cells + [""] * 10)[:10] if len(cells) < 10 else cells[:9] + [" ".join(cells[9:])]
        cells[0] = cells[0] or prev_week
        cells[2] = cells[2] or prev_strand
        cells[3] = cells[3] or prev_sub
        prev_week, prev_strand, prev_sub = cells[0], cells[2], cells[3]
        if not cells[4]:
            continue
        rows.append(cells)
    return rows


# ── Generic ───────────────────────────────────────────────────────────

def generic_table(content: str) -> Optional[TableData]:
    """첫 번째 3셀 이상 행을 헤더로, 같은 열 수의 뒤따르는 행을 데이터로."""
    lines = _pipe_lines(content)
    for i, line in enumerate(lines):
        header = split_cells(line)
        if len([c for c in header if c]) < 3:
            continue
        rows = [split_cells(l) for l in lines[i + 1:]]
        rows = [r for r in rows if len(r) == len(header) and any(r)]
        if rows:
            return TableData(headers=header, rows=rows, stage="generic")
    return None


_TYPED_PARSERS: dict[DocumentType, tuple[tuple[str, ...], Callable, Callable]] = {
    DocumentType.LESSON_CONCEPT_BREAKDOWN: (BREAKDOWN_COLUMNS, _breakdown_strict, _breakdown_tolerant),
    DocumentType.SCHEMES_OF_WORK: (SCHEMES_COLUMNS, _schemes_strict, _schemes_tolerant),
}


class TableRenderer:
    """저장된 문서 본문에서 렌더링할 표를 복원한다."""

    def parse(self, doc_type: DocumentType | str, content: str) -> TableData:
        doc_type = DocumentType.parse(doc_type)
        normalizer = TableNormalizer.for_type(doc_type)
        if normalizer is not None:
            content = normalizer.normalize(content)

        typed = _TYPED_PARSERS.get(doc_type)
        if typed is not None:
            columns, strict, tolerant = typed
            for stage, parser in (("strict", strict), ("tolerant", tolerant)):
                try:
                    rows = parser(content)
                except Exception as e:
                    logger.warning(f"[{doc_type.value}] {stage} 파서 오류: {e}")
                    rows = []
                if rows:
                    logger.debug(f"[{doc_type.value}] {stage} 파서로 {len(rows)}행 복원")
                    return TableData(headers=list(columns), rows=rows, stage=stage)

        table = generic_table(content)
        if table is not None:
            logger.debug(f"[{doc_type.value}] generic 파서로 {len(table.rows)}행 복원")
            return table
        raise RenderParseExhausted(f"[{doc_type.value}] 표를 찾지 못했습니다.")
