"""모델 호출 재시도 정책.

시도마다 독립적으로 호출하고, 실패 사이에는 고정 지연을 둔다.
ModelError 하위 예외만 재시도하며 그 외 예외는 그대로 전파된다.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from ..config import MAX_ATTEMPTS, RETRY_DELAY_SEC
from ..errors import ModelError, ModelRetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    max_attempts: int = MAX_ATTEMPTS
    delay_sec: float = RETRY_DELAY_SEC
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def run(self, fn: Callable[[], T], label: str = "") -> tuple[T, int]:
        """fn을 최대 max_attempts번 호출. (결과, 시도 횟수)를 반환.

        모두 실패하거나 재시도 불가 오류면 ModelRetryExhaustedError.
        """
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return fn(), attempt
            except ModelError as e:
                last_error = e
                logger.warning(f"[{label}] 시도 {attempt}/{self.max_attempts} 실패: {e}")
                if not e.retryable:
                    raise ModelRetryExhaustedError(attempt, e) from e
                if attempt < self.max_attempts:
                    self.sleep(self.delay_sec)
        raise ModelRetryExhaustedError(self.max_attempts, last_error)
