"""텍스트 생성 모델 클라이언트 — ABC 인터페이스 + httpx 구현체."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

import httpx
from pydantic import ValidationError

from ..errors import (
    ModelAuthError,
    ModelEmptyResponseError,
    ModelServiceError,
    ModelTimeoutError,
)
from .models import ChatMessage, ChatRequest, ChatResponse

logger = logging.getLogger(__name__)


class TextCompletionClient(ABC):
    """외부 텍스트 생성 모델 추상 인터페이스."""

    @abstractmethod
    def complete(self, system: str, prompt: str, timeout: float) -> str:
        """시스템 메시지 + 프롬프트로 한 번 호출하고 응답 텍스트를 반환.

        실패는 ModelError 하위 예외로 알린다.
        """


class OpenAICompatibleClient(TextCompletionClient):
    """httpx 기반 OpenAI 호환 chat/completions 구현체."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 8000,
        transport: httpx.BaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = httpx.Client(
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            transport=transport,
        )

    def _check_response(self, resp: httpx.Response) -> dict:
        if resp.status_code in (401, 403):
            raise ModelAuthError("모델 API 인증 실패. LLM_API_KEY를 확인하세요.")
        if resp.status_code == 429 or resp.status_code >= 500:
            raise ModelServiceError(
                f"모델 서비스 오류 ({resp.status_code}): {resp.text[:200]}",
                status_code=resp.status_code,
            )
        if resp.status_code >= 400:
            raise ModelServiceError(
                f"모델 API 요청 오류 ({resp.status_code}): {resp.text[:200]}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise ModelServiceError(
                f"모델 응답이 JSON이 아닙니다: {resp.text[:200]}", status_code=resp.status_code
            ) from e

    def complete(self, system: str, prompt: str, timeout: float) -> str:
        request = ChatRequest(
            model=self._model,
            messages=[
                ChatMessage(role="system", content=system),
                ChatMessage(role="user", content=prompt),
            ],
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        body = request.model_dump(by_alias=True, exclude_none=True)

        start = time.time()
        try:
            resp = self._client.post(
                f"{self._base_url}/chat/completions", json=body, timeout=timeout
            )
        except httpx.TimeoutException as e:
            raise ModelTimeoutError(f"모델 응답 타임아웃 ({timeout}초 초과)") from e
        except httpx.TransportError as e:
            raise ModelServiceError(f"모델 서비스 연결 실패: {e}") from e

        data = self._check_response(resp)
        try:
            text = ChatResponse.model_validate(data).text
        except ValidationError as e:
            raise ModelServiceError(
                f"모델 응답 형식 오류: {e.error_count()}개 필드 불일치", status_code=resp.status_code
            ) from e
        logger.debug(f"모델 응답 수신: {len(text)}자, {time.time() - start:.1f}초")
        if not text:
            raise ModelEmptyResponseError("모델 응답이 비어 있습니다.")
        return text

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
