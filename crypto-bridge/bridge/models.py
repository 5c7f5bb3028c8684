# -*- coding: utf-8 -*-
"""
models.py
定义桥接服务的数据模型：
- Article      上游新闻（只读）
- OnChainEvent Arkham webhook 解析出的链上事件（不可变，归 EventBuffer 所有）
- CacheEntry   响应缓存条目（整条替换，不原地修改）
- UnifiedEvent 合并输出时的临时投影，不落地
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# 输出协议里的两个类别
NEWS = "NEWS"
ONCHAIN = "ONCHAIN"

# 匹配不到币种时的兜底符号
GENERIC_SYMBOL = "CRYPTO"


@dataclass
class Article:
    # 标题与摘要
    title: str
    description: Optional[str] = None

    # 上游给的发布时间原文，如 "2024-05-01 10:22:33"（UTC）；解析交给 formatter
    published: Optional[str] = None

    # 调试用的透传字段
    link: str = ""
    source_id: str = ""

    @classmethod
    def from_provider(cls, item: Dict[str, Any]) -> "Article":
        """newsdata.io 的 results[] 单条 -> Article"""
        return cls(
            title=str(item.get("title") or ""),
            description=item.get("description") or None,
            published=item.get("pubDate") or item.get("published_at") or None,
            link=str(item.get("link") or ""),
            source_id=str(item.get("source_id") or ""),
        )


@dataclass(frozen=True)
class OnChainEvent:
    # UTC 秒
    timestamp: int
    symbol: str
    title: str
    amount: Optional[str] = None
    # 原始 payload 的 JSON 文本，仅供排查
    raw: str = ""
    category: str = ONCHAIN


@dataclass
class CacheEntry:
    key: str
    formatted_text: str
    articles: List[Article] = field(default_factory=list)
    # time.time() 秒
    created_at: float = 0.0


@dataclass
class UnifiedEvent:
    timestamp: int
    category: str
    symbol: str
    title: str

    def render(self) -> str:
        # 格式：timestamp;CATEGORY;SYMBOL;Title
        return f"{self.timestamp};{self.category};{self.symbol};{self.title}"
