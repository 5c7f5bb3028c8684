# -*- coding: utf-8 -*-
"""
bridge/webhook.py
Arkham webhook 解析：payload 结构不固定，按优先级依次尝试几种形状，
每种形状只返回它能提取到的字段，先拿到的不会被后面的覆盖。

    TransactionShape -> transaction.token/asset/symbol + transaction.value
    AlertShape       -> alert.name
    DescriptionShape -> description[:100]
    MessageShape     -> message[:100]
    Fallback         -> 有币种但没有标题时，给通用标题

什么都取不到（或 payload 不是 JSON 对象）返回 None，由调用方回 400。
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .models import GENERIC_SYMBOL, OnChainEvent
from .utils import clean_title, now_ts

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "On-chain activity detected"

# 手工验证用的样例（/test-webhook）
SAMPLE_PAYLOAD: Dict[str, Any] = {
    "transaction": {
        "value": 5000000,
        "token": "BTC",
        "from": "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa",
        "to": "1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2",
    },
    "alert": {
        "name": "Large BTC Transfer Alert",
    },
}


@dataclass
class Extracted:
    symbol: Optional[str] = None
    title: Optional[str] = None
    amount: Optional[str] = None


def _format_amount(value: float) -> Optional[str]:
    if value > 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value > 1_000:
        return f"${value / 1_000:.0f}K"
    return None


def _transaction_shape(payload: Dict[str, Any]) -> Extracted:
    tx = payload.get("transaction")
    if not isinstance(tx, dict):
        return Extracted()

    out = Extracted()
    for field_name in ("token", "asset", "symbol"):
        v = tx.get(field_name)
        if isinstance(v, str) and v.strip():
            out.symbol = v.strip().upper()
            break

    if tx.get("value"):
        sym = out.symbol or GENERIC_SYMBOL
        try:
            value = float(tx["value"])
        except (TypeError, ValueError):
            value = 0.0
        out.amount = _format_amount(value)
        if out.amount and value > 1_000_000:
            out.title = f"Large {sym} transfer: {out.amount}"
        elif out.amount:
            out.title = f"{sym} transfer: {out.amount}"
        else:
            out.title = f"{sym} movement detected"
    return out


def _alert_shape(payload: Dict[str, Any]) -> Extracted:
    alert = payload.get("alert")
    if isinstance(alert, dict) and isinstance(alert.get("name"), str) and alert["name"].strip():
        return Extracted(title=alert["name"])
    return Extracted()


def _text_field_shape(field_name: str) -> Callable[[Dict[str, Any]], Extracted]:
    def _shape(payload: Dict[str, Any]) -> Extracted:
        v = payload.get(field_name)
        if isinstance(v, str) and v.strip():
            return Extracted(title=v[:100])
        return Extracted()
    _shape.__name__ = f"_{field_name}_shape"
    return _shape


STRATEGIES: List[Callable[[Dict[str, Any]], Extracted]] = [
    _transaction_shape,
    _alert_shape,
    _text_field_shape("description"),
    _text_field_shape("message"),
]


def ingest(payload: Any, now: Optional[int] = None) -> Optional[OnChainEvent]:
    """
    webhook payload -> OnChainEvent；不抛异常

    参数:
        payload: 已解析的 JSON
        now: 事件时间（UTC 秒），默认接收时刻

    返回:
        OnChainEvent 或 None
    """
    if not isinstance(payload, dict):
        logger.info("[webhook] payload is %s, not an object", type(payload).__name__)
        return None

    found = Extracted()
    for strategy in STRATEGIES:
        try:
            got = strategy(payload)
        except Exception as e:
            logger.warning("[webhook] %s failed: %r", strategy.__name__, e)
            continue
        found.symbol = found.symbol or got.symbol
        found.title = found.title or got.title
        found.amount = found.amount or got.amount
        if found.title:
            break

    if not found.symbol and not found.title:
        logger.info("[webhook] no usable fields in payload keys=%s", list(payload)[:10])
        return None

    # Fallback：有币种没标题
    title = clean_title(found.title or DEFAULT_TITLE) or DEFAULT_TITLE

    try:
        raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        raw = ""

    return OnChainEvent(
        timestamp=int(now if now is not None else now_ts()),
        symbol=found.symbol or GENERIC_SYMBOL,
        title=title,
        amount=found.amount,
        raw=raw,
    )
