# 工具模块：时间戳、标题清洗、发布时间解析、词边界正则

import math
import re
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

# '|' 是记录分隔符，';' 是字段分隔符，标题里都不能出现
_DELIMITERS_RE = re.compile(r"[|;]")
_WS_RE = re.compile(r"\s+")

TITLE_MAX_LEN = 100


def compile_word_pattern(*words: str) -> re.Pattern:
    """
    为若干词编译整词匹配的正则（忽略大小写）

    参数:
        words: 例如 ("BTC", "Bitcoin")

    返回:
        \\bBTC\\b|\\bBitcoin\\b
    """
    alts = [rf"\b{re.escape(w)}\b" for w in words if w]
    return re.compile("|".join(alts), re.IGNORECASE)


def now_ts() -> int:
    """当前 UTC 秒级时间戳"""
    return int(time.time())


def clean_title(title: Optional[str], limit: int = TITLE_MAX_LEN) -> str:
    """
    去掉分隔符、合并空白、去首尾空格，再截断到 limit 个字符
    """
    s = _DELIMITERS_RE.sub(" ", title or "")
    s = _WS_RE.sub(" ", s).strip()
    return s[:limit]


def parse_published_ts(value: Optional[str]) -> Optional[int]:
    """
    发布时间 -> UTC 秒；解析不了返回 None

    支持：
      - newsdata.io 的 "2024-05-01 10:22:33"（无时区，按 UTC）
      - ISO 8601，含 "Z" 后缀
      - RFC 822（RSS 常见）
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        # NaN / Infinity 当作解析失败
        if not math.isfinite(value):
            return None
        # 毫秒级的也兼容一下
        v = int(value)
        return v // 1000 if v > 10_000_000_000 else v

    s = str(value).strip()
    if not s:
        return None

    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        try:
            dt = parsedate_to_datetime(s)
        except (TypeError, ValueError):
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())
