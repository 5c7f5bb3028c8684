# -*- coding: utf-8 -*-
"""
bridge/pipeline.py
主读路径：缓存 -> (未命中) 限流后拉上游 -> 合并链上事件 -> 写缓存 -> 返回

降级顺序：
  1) 缓存新鲜：直接用缓存里的新闻，但链上事件每次都重新合并
  2) 上游失败且有旧缓存：用旧新闻 + 当前链上事件
  3) 上游失败且无缓存：只输出链上事件
  4) 仍然为空：配额用尽返回空串；其它失败抛 ServiceUnavailable
"""

from __future__ import annotations
import logging
import time
from typing import Callable, List, Optional

from .buffer import EventBuffer
from .cache import ResponseCache, make_cache_key
from .errors import RateLimited, ServiceUnavailable, UpstreamError, ValidationError
from .fetcher import UpstreamFetcher
from .formatter import format_feed, parse_symbols
from .models import Article, CacheEntry

logger = logging.getLogger(__name__)


class FeedService:
    def __init__(
        self,
        cache: ResponseCache,
        buffer: EventBuffer,
        fetcher: UpstreamFetcher,
        *,
        max_symbols: int = 5,
        onchain_window_hours: float = 24,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.buffer = buffer
        self.fetcher = fetcher
        self.max_symbols = int(max_symbols)
        self.onchain_window_hours = onchain_window_hours
        self._clock = clock

    def validate(self, symbols: Optional[str]) -> None:
        if symbols and len(symbols.split(",")) > self.max_symbols:
            raise ValidationError(f"Maximum {self.max_symbols} symbols allowed")

    def merge(self, articles: List[Article], symbols: Optional[str]) -> str:
        """新闻 + 当前缓冲区里窗口内的链上事件"""
        return format_feed(
            articles,
            parse_symbols(symbols),
            self.buffer.recent(self.onchain_window_hours),
            now=int(self._clock()),
        )

    async def get_feed(
        self,
        symbols: Optional[str] = None,
        keywords: Optional[str] = None,
        timeframe: Optional[str] = None,
    ) -> str:
        self.validate(symbols)

        key = make_cache_key(symbols, keywords, timeframe)
        cached = self.cache.get(key)

        if self.cache.is_fresh(cached):
            logger.info("[pipeline] cache hit key=%s", key)
            return self.merge(cached.articles, symbols)

        try:
            articles = await self.fetcher.fetch(symbols, keywords, timeframe)
        except UpstreamError as e:
            return self._degrade(key, cached, symbols, e)

        text = self.merge(articles, symbols)
        self.cache.put(key, CacheEntry(
            key=key,
            formatted_text=text,
            articles=articles,
            created_at=self._clock(),
        ))
        n = len(text.split("|")) if text else 0
        logger.info("[pipeline] served fresh data key=%s events=%d", key, n)
        return text

    def _degrade(self, key: str, cached: Optional[CacheEntry], symbols: Optional[str], err: UpstreamError) -> str:
        if cached is not None:
            logger.warning("[pipeline] upstream failed (%s), serving stale cache key=%s", err, key)
            return self.merge(cached.articles, symbols)

        text = self.merge([], symbols)
        if text:
            logger.warning("[pipeline] upstream failed (%s), serving on-chain only key=%s", err, key)
            return text

        if isinstance(err, RateLimited):
            logger.warning("[pipeline] quota exhausted and nothing buffered, key=%s", key)
            return ""

        logger.error("[pipeline] upstream failed with no cache backup: %s", err)
        raise ServiceUnavailable("News service temporarily unavailable", cause=err)
