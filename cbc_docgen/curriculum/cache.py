"""TTL 캐시 — 읽기는 잠금 없이, 쓰기는 스냅샷 교체.

읽기 쪽은 현재 스냅샷(MappingProxyType)을 한 번 참조해서 조회하므로
여러 스레드가 동시에 읽어도 잠금이 필요 없다. 쓰기 쪽만 잠금을 잡고
새 dict를 만든 뒤 참조를 통째로 바꾼다 (copy-on-write). 약간의 stale 읽기는 허용.
"""

from __future__ import annotations

import threading
import time
from types import MappingProxyType
from typing import Callable, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """만료 시간이 있는 키-값 캐시."""

    def __init__(self, ttl_sec: float, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: MappingProxyType = MappingProxyType({})

    def get(self, key: Hashable) -> Optional[V]:
        item = self._snapshot.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self._clock() >= expires_at:
            return None
        return value

    def set(self, key: Hashable, value: V) -> None:
        with self._lock:
            now = self._clock()
            fresh = {k: v for k, v in self._snapshot.items() if v[0] > now}
            fresh[key] = (now + self._ttl, value)
            self._snapshot = MappingProxyType(fresh)

    def clear(self) -> None:
        with self._lock:
            self._snapshot = MappingProxyType({})

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for expires_at, _ in self._snapshot.values() if expires_at > now)
