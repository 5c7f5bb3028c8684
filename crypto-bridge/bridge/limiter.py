"""
bridge/limiter.py
按自然日计数的上游调用配额。
- 跨日（本地时钟）后在第一次访问时惰性清零
- 配额用尽立刻返回 False，不排队不阻塞
"""

from __future__ import annotations
import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


def _local_day(ts: float) -> str:
    return time.strftime("%Y-%m-%d", time.localtime(ts))


class RateLimiter:
    def __init__(self, quota: int = 200, clock: Callable[[], float] = time.time):
        self.quota = int(quota)
        self._clock = clock
        self._lock = threading.Lock()
        self._count = 0
        self._reset_day = _local_day(clock())

    def _roll_day(self) -> None:
        # 调用方必须已持锁
        today = _local_day(self._clock())
        if today != self._reset_day:
            logger.info("[limiter] daily request count reset (%s -> %s, used=%d)",
                        self._reset_day, today, self._count)
            self._count = 0
            self._reset_day = today

    def try_acquire(self) -> bool:
        with self._lock:
            self._roll_day()
            if self._count >= self.quota:
                return False
            self._count += 1
            return True

    @property
    def count(self) -> int:
        with self._lock:
            self._roll_day()
            return self._count

    @property
    def remaining(self) -> int:
        with self._lock:
            self._roll_day()
            return self.quota - self._count
