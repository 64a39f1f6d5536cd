"""파이프라인 실행 결과 모델."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..document.models import GeneratedDocument


class DerivationResult(BaseModel):
    """원본 개념 분해표 → 파생 문서 생성 결과.

    파생 문서가 만들어진 뒤 연결 저장만 실패하면 document는 유지되고
    link_created=False, errors에 사유가 남는다.
    """
    document: GeneratedDocument
    link_created: bool = Field(False, alias="linkCreated")
    concepts_used: int = Field(0, alias="conceptsUsed")
    errors: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @property
    def is_success(self) -> bool:
        return len(self.errors) == 0


class RenderResult(BaseModel):
    """PDF 렌더링 결과."""
    document_id: str = Field(alias="documentId")
    output_path: Optional[str] = Field(None, alias="outputPath")
    page_format: str = Field("A4", alias="pageFormat")
    landscape: bool = False
    rows_rendered: int = Field(0, alias="rowsRendered")
    parser_stage: Optional[str] = Field(None, alias="parserStage")
    errors: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @property
    def is_success(self) -> bool:
        return len(self.errors) == 0
