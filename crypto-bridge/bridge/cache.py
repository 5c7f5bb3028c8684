# -*- coding: utf-8 -*-
"""
bridge/cache.py
进程内响应缓存（重启即丢，不做持久化）：
- key 由 (symbols, keywords, timeframe) 拼成，缺省值 all / general / 24
- 新鲜度由调用方用 is_fresh() 判断：now - created_at < TTL
- 过期条目不删除，上游失败时还要拿来兜底
- 超过上限时按插入顺序淘汰最老的一条（不是 LRU）
"""

from __future__ import annotations
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from .models import CacheEntry

logger = logging.getLogger(__name__)


# --------- key ---------
def make_cache_key(symbols: Optional[str], keywords: Optional[str], timeframe: Optional[str]) -> str:
    return f"{symbols or 'all'}_{keywords or 'general'}_{timeframe or '24'}"


class ResponseCache:
    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        max_entries: int = 50,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = float(ttl_seconds)
        self.max_entries = int(max_entries)
        self._clock = clock
        self._lock = threading.Lock()
        # dict 保持插入顺序，第一个 key 就是最老的
        self._entries: Dict[str, CacheEntry] = {}

    # --------- 读 ---------
    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def is_fresh(self, entry: Optional[CacheEntry]) -> bool:
        if entry is None:
            return False
        return self._clock() - entry.created_at < self.ttl_seconds

    # --------- 写（整条替换） ---------
    def put(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            # 覆盖已有 key 时保持它原来的插入位置
            self._entries[key] = entry
            if len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.info("[cache] evicted oldest key=%s", oldest)

    # --------- 给 /cache 看的 ---------
    def snapshot(self) -> List[dict]:
        now = self._clock()
        with self._lock:
            items = list(self._entries.items())
        return [
            {
                "key": key,
                "age_minutes": int((now - e.created_at) // 60),
                "data_length": len(e.formatted_text or ""),
            }
            for key, e in items
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
