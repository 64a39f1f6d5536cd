"""문서 생성 파이프라인 예외 계층.

모델 호출 오류(ModelError 하위)만 재시도 대상이다.
ModelAuthError는 재시도해도 결과가 같으므로 즉시 폴백으로 넘어간다.
"""

from __future__ import annotations


class DocgenError(Exception):
    """cbc_docgen 예외의 기반 클래스."""


# ── 요청 ──────────────────────────────────────────────────────────────

class RequestValidationError(DocgenError, ValueError):
    """요청 객체 자체가 없거나 형식이 잘못된 경우. 필드 누락은 기본값으로 대체된다."""


# ── 모델 호출 ─────────────────────────────────────────────────────────

class ModelError(DocgenError):
    """외부 텍스트 생성 모델 호출 실패. 재시도 대상."""

    retryable: bool = True


class ModelTimeoutError(ModelError):
    """제한 시간 안에 응답이 오지 않음."""


class ModelEmptyResponseError(ModelError):
    """응답이 비어 있거나 최소 길이에 못 미침."""


class ModelServiceError(ModelError):
    """레이트 리밋, 5xx 등 서비스 측 오류."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ModelAuthError(ModelError):
    """인증 실패. 재시도하지 않는다."""

    retryable = False


class ModelRetryExhaustedError(DocgenError):
    """모든 시도가 실패함. 오케스트레이터 내부에서 폴백으로 변환된다."""

    def __init__(self, attempts: int, last_error: Exception | None):
        super().__init__(f"모델 호출 {attempts}회 모두 실패: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


# ── 문서 / 연결 ───────────────────────────────────────────────────────

class DocumentNotFoundError(DocgenError, LookupError):
    """원본 문서가 없거나 파생 가능한 타입이 아님."""


class ExtractionEmptyError(DocgenError):
    """원본 문서에서 개념을 하나도 추출하지 못함. 파생 문서는 생성되지 않는다."""


class LinkPersistenceError(DocgenError):
    """부모↔자식 연결 저장 실패. 로그만 남기고 파생 문서는 유지한다."""


# ── 렌더링 ────────────────────────────────────────────────────────────

class RenderParseExhausted(DocgenError):
    """strict / tolerant / generic 파서 모두 행을 찾지 못함."""


class PdfRenderError(DocgenError):
    """브라우저 PDF 렌더링 실패."""
