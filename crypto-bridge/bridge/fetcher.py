from __future__ import annotations

import json
import logging
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx

from .errors import RateLimited, UpstreamMalformed, UpstreamUnavailable
from .limiter import RateLimiter
from .models import Article
from .symbols import coin_name

logger = logging.getLogger(__name__)

NEWSDATA_URL = "https://newsdata.io/api/1/news"
FALLBACK_QUERY = "cryptocurrency OR bitcoin OR crypto OR blockchain"
USER_AGENT = "CryptoBridgeServer/2.0"

# 日志里不能出现 apikey
_APIKEY_RE = re.compile(r"(apikey|token)=[^&]+", re.IGNORECASE)


def _sanitize_url(url: str) -> str:
    return _APIKEY_RE.sub(r"\1=***", url)


# -------------------- 查询构造 --------------------

def build_query(symbols: Optional[str], keywords: Optional[str]) -> str:
    """
    "BTC,eth" + "etf" -> "BTC OR Bitcoin OR ETH OR Ethereum OR etf"
    两者都为空时用通用加密货币检索词
    """
    terms: List[str] = []
    if symbols:
        for s in symbols.split(","):
            sym = s.strip().upper()
            if sym:
                terms.append(f"{sym} OR {coin_name(sym)}")
    if keywords:
        terms.append(keywords)
    if not terms:
        terms.append(FALLBACK_QUERY)
    return " OR ".join(terms)


def from_date(timeframe: Optional[str], now: float) -> str:
    """相对小时数 -> 绝对起始日期 YYYY-MM-DD（UTC）；解析不了按 24 小时"""
    try:
        hours = int(timeframe) if timeframe else 24
    except (TypeError, ValueError):
        hours = 24
    if hours <= 0:
        hours = 24
    start = datetime.fromtimestamp(now, tz=timezone.utc) - timedelta(hours=hours)
    return start.strftime("%Y-%m-%d")


# -------------------- 上游调用 --------------------

class UpstreamFetcher:
    """
    newsdata.io 拉取；每次调用前向 RateLimiter 申请额度，单次尝试不重试。
    client 全局复用一个 httpx.AsyncClient，close() 时释放。
    """

    def __init__(
        self,
        api_key: str,
        limiter: RateLimiter,
        *,
        base_url: str = NEWSDATA_URL,
        timeout: float = 10.0,
        max_results: int = 10,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.api_key = api_key or ""
        self.limiter = limiter
        self.base_url = base_url
        self.timeout = float(timeout)
        self.max_results = int(max_results)
        self._client = client
        self._clock = clock

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, headers={"User-Agent": USER_AGENT})
        return self._client

    def build_params(self, symbols: Optional[str], keywords: Optional[str], timeframe: Optional[str]) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "apikey": self.api_key,
            "q": build_query(symbols, keywords),
            "category": "business,technology",
            "from": from_date(timeframe, self._clock()),
            "language": "en",
        }
        if self.max_results > 0:
            params["size"] = self.max_results
        return params

    async def fetch(
        self,
        symbols: Optional[str] = None,
        keywords: Optional[str] = None,
        timeframe: Optional[str] = None,
    ) -> List[Article]:
        if not self.limiter.try_acquire():
            logger.warning("[fetcher] daily quota exhausted (%d)", self.limiter.quota)
            raise RateLimited("Daily API rate limit exceeded")

        params = self.build_params(symbols, keywords, timeframe)
        client = self._ensure_client()

        try:
            resp = await client.get(
                self.base_url,
                params=params,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("[fetcher] timeout after %.0fs", self.timeout)
            raise UpstreamUnavailable(f"Upstream timeout: {e!r}") from e
        except httpx.HTTPError as e:
            logger.error("[fetcher] request failed: %r", e)
            raise UpstreamUnavailable(f"Upstream request failed: {e!r}") from e

        url = _sanitize_url(str(resp.request.url))
        logger.info("[fetcher] GET %s -> %s", url, resp.status_code)

        if not resp.is_success:
            raise UpstreamUnavailable(f"API responded with status: {resp.status_code}")

        try:
            data = resp.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise UpstreamMalformed(
                f"Upstream returned non-JSON (content-type={resp.headers.get('content-type', '')!r})"
            ) from e

        if not isinstance(data, dict):
            raise UpstreamMalformed(f"Upstream returned {type(data).__name__} instead of object")

        results = data.get("results") or []
        if not isinstance(results, list):
            raise UpstreamMalformed(f"Upstream results is {type(results).__name__}, expected list")

        articles = [Article.from_provider(item) for item in results if isinstance(item, dict)]
        logger.info("[fetcher] articles=%d, requests today=%d", len(articles), self.limiter.count)
        return articles

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
