# coding: utf-8
"""
bridge/web.py
HTTP 接口（FastAPI）。所有业务异常在这里翻译成状态码 + JSON，不让任何请求把进程打挂。

  GET  /health            存活 + 计数
  GET  /crypto-news       主输出（text/plain）
  GET  /debug             原始新闻样本 + 链上样本 + 格式化结果
  GET  /cache             缓存 key、年龄、大小
  POST /arkham-webhook    接收 Arkham 推送
  GET  /arkham-events     查看缓冲区里的链上事件
  GET|POST /test-webhook  注入一条样例事件
"""

from __future__ import annotations
import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .buffer import EventBuffer
from .cache import ResponseCache
from .config import load_cfg
from .errors import MalformedWebhook, ServiceUnavailable, UpstreamError, ValidationError
from .fetcher import UpstreamFetcher
from .formatter import format_feed, parse_symbols
from .limiter import RateLimiter
from .pipeline import FeedService
from .webhook import SAMPLE_PAYLOAD, ingest

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "/health",
    "/crypto-news",
    "/debug",
    "/cache",
    "/arkham-webhook",
    "/arkham-events",
    "/test-webhook",
]

FEATURES = ["news", "arkham-webhooks", "symbol-detection", "caching"]


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_hours(hours: Optional[str], default: int = 24) -> int:
    try:
        h = int(hours) if hours else default
    except (TypeError, ValueError):
        return default
    return h if h > 0 else default


def create_app(
    cfg: Optional[dict] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """
    组装各组件并返回 FastAPI 应用。
    http_client / clock 允许测试注入（MockTransport、模拟时钟）。
    """
    raw = cfg or load_cfg()
    b = raw.get("bridge", raw)

    limiter = RateLimiter(quota=b.get("max_requests_per_day", 200), clock=clock)
    buffer = EventBuffer(capacity=b.get("buffer_capacity", 100), clock=clock)
    cache = ResponseCache(
        ttl_seconds=float(b.get("cache_ttl_minutes", 30)) * 60,
        max_entries=b.get("cache_max_entries", 50),
        clock=clock,
    )
    fetcher = UpstreamFetcher(
        b.get("newsdata_api_key", ""),
        limiter,
        base_url=b.get("base_url", "https://newsdata.io/api/1/news"),
        timeout=b.get("request_timeout_sec", 10),
        max_results=b.get("max_results_per_request", 10),
        client=http_client,
        clock=clock,
    )
    window = b.get("onchain_window_hours", 24)
    feed = FeedService(
        cache, buffer, fetcher,
        max_symbols=b.get("max_symbols", 5),
        onchain_window_hours=window,
        clock=clock,
    )
    version = str(b.get("version", "2.0"))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Crypto Bridge Server v%s starting", version)
        logger.info("Cache duration: %s minutes", b.get("cache_ttl_minutes", 30))
        logger.info("Daily request limit: %s", limiter.quota)
        if not fetcher.api_key:
            logger.warning("NEWSDATA_API_KEY is not set - upstream calls will fail")
        yield
        await fetcher.close()
        logger.info("Crypto Bridge Server shut down")

    app = FastAPI(title="crypto-bridge", version=version, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter
    app.state.buffer = buffer
    app.state.cache = cache
    app.state.fetcher = fetcher
    app.state.feed = feed

    # ---------- 异常 -> HTTP ----------

    @app.exception_handler(ValidationError)
    async def _validation(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(ServiceUnavailable)
    async def _unavailable(request: Request, exc: ServiceUnavailable):
        return JSONResponse(
            status_code=503,
            content={"error": str(exc), "details": str(exc.cause) if exc.cause else ""},
        )

    @app.exception_handler(MalformedWebhook)
    async def _bad_webhook(request: Request, exc: MalformedWebhook):
        return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"error": "Endpoint not found", "available_endpoints": ENDPOINTS},
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail},
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"error": "Server error", "timestamp": _iso_now()})

    # ---------- 路由 ----------

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": _iso_now(),
            "version": version,
            "daily_requests": limiter.count,
            "remaining_requests": limiter.remaining,
            "cache_entries": len(cache),
            "arkham_events": len(buffer),
            "features": FEATURES,
        }

    @app.get("/crypto-news", response_class=PlainTextResponse)
    async def crypto_news(
        symbols: Optional[str] = None,
        keywords: Optional[str] = None,
        timeframe: Optional[str] = None,
    ):
        text = await feed.get_feed(symbols, keywords, timeframe)
        return PlainTextResponse(text or "")

    @app.get("/debug")
    async def debug(
        symbols: Optional[str] = None,
        keywords: Optional[str] = None,
        timeframe: Optional[str] = None,
    ):
        feed.validate(symbols)
        onchain = buffer.recent(window)
        try:
            articles = await fetcher.fetch(symbols, keywords, timeframe)
        except UpstreamError as e:
            return JSONResponse(
                status_code=500,
                content={"error": str(e), "arkham_events": [_event_summary(ev) for ev in onchain[:3]]},
            )
        return {
            "request_params": {"symbols": symbols, "keywords": keywords, "timeframe": timeframe},
            "news_article_count": len(articles),
            "arkham_event_count": len(onchain),
            "articles": [_article_summary(a) for a in articles[:3]],
            "arkham_events": [_event_summary(ev) for ev in onchain[:3]],
            "formatted": format_feed(articles, parse_symbols(symbols), onchain, now=int(clock())),
        }

    @app.get("/cache")
    async def cache_stats():
        entries = cache.snapshot()
        return {
            "total_entries": len(entries),
            "entries": [
                {"key": e["key"], "age": f"{e['age_minutes']} minutes", "data_length": e["data_length"]}
                for e in entries
            ],
        }

    @app.post("/arkham-webhook")
    async def arkham_webhook(request: Request):
        body = await request.body()
        try:
            payload = json.loads(body) if body else None
        except ValueError:
            payload = None
        logger.info("[webhook] received %d bytes", len(body))

        event = ingest(payload, now=int(clock()))
        if event is None:
            raise MalformedWebhook("Could not process webhook data")

        buffer.push(event)
        return {
            "success": True,
            "message": "Webhook processed successfully",
            "event": {"symbol": event.symbol, "title": event.title, "timestamp": event.timestamp},
        }

    @app.get("/arkham-events")
    async def arkham_events(hours: Optional[str] = None):
        hours_back = _parse_hours(hours)
        events = buffer.recent(hours_back)
        now = int(clock())
        return {
            "total_events": len(buffer),
            "recent_events": len(events),
            "hours_back": hours_back,
            "events": [
                {
                    "timestamp": e.timestamp,
                    "symbol": e.symbol,
                    "title": e.title,
                    "age": f"{(now - e.timestamp) // 60} minutes ago",
                }
                for e in events
            ],
        }

    @app.api_route("/test-webhook", methods=["GET", "POST"])
    async def test_webhook():
        event = ingest(SAMPLE_PAYLOAD, now=int(clock()))
        if event is None:
            raise MalformedWebhook("Failed to process test event")
        buffer.push(event)
        return {
            "success": True,
            "message": "Test event created successfully",
            "test_event": _event_summary(event),
            "instructions": "Check /arkham-events to see stored events, "
                            "and /crypto-news?symbols=BTC to see it in the feed",
        }

    return app


def _article_summary(a) -> dict:
    return {
        "title": a.title,
        "description": a.description,
        "published": a.published,
        "link": a.link,
        "source_id": a.source_id,
    }


def _event_summary(e) -> dict:
    return {
        "timestamp": e.timestamp,
        "category": e.category,
        "symbol": e.symbol,
        "title": e.title,
        "amount": e.amount,
    }
