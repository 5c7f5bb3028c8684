# 合并与输出模块
# 新闻 + 链上事件 -> "timestamp;CATEGORY;SYMBOL;Title" 记录，按时间倒序，用 '|' 连接
# 单条出错只跳过该条，不影响整体输出

import logging
from typing import Iterable, List, Optional, Sequence

from .models import Article, OnChainEvent, UnifiedEvent, NEWS, ONCHAIN, GENERIC_SYMBOL
from .symbols import coin_name
from .utils import clean_title, compile_word_pattern, now_ts, parse_published_ts

logger = logging.getLogger(__name__)

RECORD_SEP = "|"


def parse_symbols(raw: Optional[str]) -> Optional[List[str]]:
    """
    "btc, eth,BTC" -> ["BTC", "ETH"]；保持请求里的顺序，去重、去空

    返回:
        None 表示没有指定币种（不做过滤）
    """
    if not raw:
        return None
    out: List[str] = []
    for s in raw.split(","):
        s = s.strip().upper()
        if s and s not in out:
            out.append(s)
    return out or None


def _detect_symbol(article: Article, requested: Optional[Sequence[str]]) -> str:
    """
    在 标题 + 摘要 里按顺序找第一个命中的币种（代码或名称，整词、忽略大小写）

    返回:
        命中的代码；都没命中返回 CRYPTO
    """
    if not requested:
        return GENERIC_SYMBOL

    text = f"{article.title or ''} {article.description or ''}"
    for symbol in requested:
        if compile_word_pattern(symbol, coin_name(symbol)).search(text):
            return symbol
    return GENERIC_SYMBOL


def _article_to_event(article: Article, requested: Optional[Sequence[str]], now: int) -> UnifiedEvent:
    ts = parse_published_ts(article.published)
    if ts is None:
        ts = now
    return UnifiedEvent(
        timestamp=ts,
        category=NEWS,
        symbol=_detect_symbol(article, requested),
        title=clean_title(article.title or "No title"),
    )


def _wanted(event: OnChainEvent, requested: Optional[Sequence[str]]) -> bool:
    # 指定了币种时，只保留匹配的或通用的 CRYPTO
    if not requested:
        return True
    return event.symbol in requested or event.symbol == GENERIC_SYMBOL


def format_feed(
    articles: Iterable[Article],
    requested_symbols: Optional[Sequence[str]],
    onchain: Iterable[OnChainEvent],
    now: Optional[int] = None,
) -> str:
    """
    合并新闻与链上事件

    参数:
        articles: 上游新闻（可以来自缓存）
        requested_symbols: parse_symbols() 的结果，None 表示不过滤
        onchain: EventBuffer.recent() 的结果
        now: 发布时间缺失时用的兜底时间，默认当前时间

    返回:
        '|' 连接的记录串；什么都没有时返回 ""
    """
    if now is None:
        now = now_ts()

    events: List[UnifiedEvent] = []

    for article in articles or []:
        try:
            events.append(_article_to_event(article, requested_symbols, now))
        except Exception as e:
            logger.warning("[formatter] skip article: %r", e)

    for ev in onchain or []:
        try:
            if not _wanted(ev, requested_symbols):
                continue
            events.append(UnifiedEvent(int(ev.timestamp), ONCHAIN, ev.symbol, ev.title))
        except Exception as e:
            logger.warning("[formatter] skip on-chain event: %r", e)

    # sorted 是稳定排序，同一时间戳保持原相对顺序
    events = sorted(events, key=lambda e: e.timestamp, reverse=True)
    return RECORD_SEP.join(e.render() for e in events)
