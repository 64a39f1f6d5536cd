"""OpenAI 호환 chat/completions 요청/응답 데이터 모델."""

from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: str                              # system | user | assistant
    content: Optional[str] = None


class ChatRequest(BaseModel):
    """POST /chat/completions 요청 바디."""
    model: str
    messages: list[ChatMessage]
    temperature: float = 0.3
    max_tokens: Optional[int] = None


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: Optional[str] = None


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    """chat/completions 응답. 첫 choice의 content만 사용한다."""
    id: str = ""
    model: str = ""
    choices: list[ChatChoice] = Field(default_factory=list)
    usage: Optional[Usage] = None

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return (self.choices[0].message.content or "").strip()
