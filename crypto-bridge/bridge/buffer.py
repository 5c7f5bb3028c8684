"""
bridge/buffer.py
链上事件环形缓冲：新事件插到最前，超容量从尾部丢最旧的。
顺序 = 接收顺序，不按事件时间重排（重排只在 formatter 输出时做）。
"""

from __future__ import annotations
import logging
import threading
import time
from typing import Callable, List

from .models import OnChainEvent

logger = logging.getLogger(__name__)


class EventBuffer:
    def __init__(self, capacity: int = 100, clock: Callable[[], float] = time.time):
        self.capacity = int(capacity)
        self._clock = clock
        self._lock = threading.Lock()
        self._events: List[OnChainEvent] = []

    def push(self, event: OnChainEvent) -> None:
        with self._lock:
            self._events.insert(0, event)
            if len(self._events) > self.capacity:
                del self._events[self.capacity:]
        logger.info("[buffer] new on-chain event: %s - %s", event.symbol, event.title)

    def recent(self, window_hours: float = 24) -> List[OnChainEvent]:
        """窗口内的事件，最新在前；返回副本"""
        cutoff = int(self._clock()) - window_hours * 3600
        with self._lock:
            return [e for e in self._events if e.timestamp >= cutoff]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
