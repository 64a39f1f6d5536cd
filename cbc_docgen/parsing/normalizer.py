"""모델 출력 정리 + 깨진 파이프 표 복구.

모델은 한 행을 여러 물리적 줄로 나눠 내보내는 일이 잦다.
TableNormalizer는 파이프 개수가 한 행 분량이 될 때까지 조각을 모아
한 줄로 합친다. 이미 정상인 텍스트에 다시 적용해도 결과가 같다 (멱등).
"""

from __future__ import annotations

import re

from ..document.models import DocumentType

EXPECTED_COLUMNS = {
    DocumentType.LESSON_CONCEPT_BREAKDOWN: 5,
    DocumentType.SCHEMES_OF_WORK: 10,
}

_FENCE_OPEN = re.compile(r"^\s*```[\w-]*\s*\n")
_FENCE_CLOSE = re.compile(r"\n?\s*```\s*$")
SEPARATOR_ROW = re.compile(r"^\|?\s*:?-{2,}:?\s*(\|\s*:?-{2,}:?\s*)*\|?\s*$")


def clean_model_output(text: str) -> str:
    """앞뒤 공백과 ```markdown 코드 펜스를 걷어낸다."""
    if not text:
        return ""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def is_separator_row(line: str) -> bool:
    return bool(SEPARATOR_ROW.match(line.strip()))


class TableNormalizer:
    """문서 타입별 열 개수를 기준으로 쪼개진 행을 다시 합친다."""

    def __init__(self, columns: int):
        if columns < 1:
            raise ValueError("columns는 1 이상이어야 합니다.")
        self.columns = columns

    @classmethod
    def for_type(cls, doc_type: DocumentType) -> "TableNormalizer | None":
        """표 형식이 아닌 문서 타입이면 None."""
        columns = EXPECTED_COLUMNS.get(DocumentType.parse(doc_type))
        return cls(columns) if columns else None

    def is_complete(self, line: str) -> bool:
        """열 N개 행은 파이프 N+1개. 앞쪽 파이프가 빠진 행은 N개로 본다."""
        pipes = line.count("|")
        if pipes >= self.columns + 1:
            return True
        return not line.startswith("|") and line.endswith("|") and pipes >= self.columns

    def normalize(self, text: str) -> str:
        out: list[str] = []
        buffer: list[str] = []

        def flush():
            if buffer:
                out.append(" ".join(buffer))
                buffer.clear()

        for raw in text.splitlines():
            line = raw.strip()

            if not line:
                flush()
                out.append("")
                continue

            if is_separator_row(line):
                flush()
                out.append(line)
                continue

            if buffer:
                if "|" in line and self.is_complete(line) and line.startswith("|"):
                    # 열린 조각이 있는데 새 줄이 그 자체로 완전한 행이면 조각을 먼저 내보낸다
                    flush()
                    out.append(line)
                    continue
                buffer.append(line)
                if self.is_complete(" ".join(buffer)):
                    flush()
                continue

            if "|" not in line or self.is_complete(line):
                out.append(line)
                continue

            buffer.append(line)

        flush()
        return "\n".join(out)
