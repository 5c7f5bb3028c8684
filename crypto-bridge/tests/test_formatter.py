# -*- coding: utf-8 -*-
"""
tests/test_formatter.py
合并输出：记录格式、币种识别、标题清洗、链上过滤、全局倒序、幂等、单条容错。
"""

from bridge.formatter import format_feed, parse_symbols
from bridge.models import Article, OnChainEvent
from bridge.utils import clean_title, parse_published_ts

NOW = 1_714_564_800  # 2024-05-01 12:00:00 UTC


def _art(title, published=None, description=None):
    return Article(title=title, description=description, published=published)


def _timestamps(out):
    return [int(r.split(";")[0]) for r in out.split("|")]


def test_parse_symbols():
    assert parse_symbols(None) is None
    assert parse_symbols("") is None
    assert parse_symbols(" btc, eth ,BTC,") == ["BTC", "ETH"]


def test_clean_title_strips_delimiters():
    out = clean_title("BTC soars!|; up 10%")
    assert "|" not in out and ";" not in out
    assert out == "BTC soars! up 10%"


def test_clean_title_collapses_and_truncates():
    assert clean_title("  a \n\t b  ") == "a b"
    assert len(clean_title("x" * 300)) == 100


def test_parse_published_ts():
    assert parse_published_ts("2024-05-01 12:00:00") == NOW
    assert parse_published_ts("2024-05-01T12:00:00Z") == NOW
    assert parse_published_ts("Wed, 01 May 2024 12:00:00 GMT") == NOW
    assert parse_published_ts("yesterday-ish") is None
    assert parse_published_ts(None) is None


def test_onchain_only_scenario():
    T = NOW - 120
    ev = OnChainEvent(timestamp=T, symbol="BTC", title="Large BTC transfer: $5.0M")
    out = format_feed([], parse_symbols("BTC"), [ev], now=NOW)
    assert out == f"{T};ONCHAIN;BTC;Large BTC transfer: $5.0M"


def test_onchain_filtered_by_requested_symbol():
    ev = OnChainEvent(timestamp=NOW, symbol="BTC", title="Large BTC transfer: $5.0M")
    assert format_feed([], ["ETH"], [ev], now=NOW) == ""


def test_generic_onchain_event_passes_filter():
    ev = OnChainEvent(timestamp=NOW, symbol="CRYPTO", title="Whale alert")
    assert format_feed([], ["ETH"], [ev], now=NOW) == f"{NOW};ONCHAIN;CRYPTO;Whale alert"


def test_empty_input_is_empty_string():
    assert format_feed([], None, [], now=NOW) == ""


def test_global_descending_order_across_sources():
    arts = [
        _art("first", published="1970-01-01 00:01:40"),   # 100
        _art("second", published="1970-01-01 00:03:20"),  # 200
    ]
    ev = OnChainEvent(timestamp=150, symbol="CRYPTO", title="chain")
    out = format_feed(arts, None, [ev], now=NOW)
    assert out.split("|") == [
        "200;NEWS;CRYPTO;second",
        "150;ONCHAIN;CRYPTO;chain",
        "100;NEWS;CRYPTO;first",
    ]


def test_ties_keep_original_order():
    arts = [_art("a", published="2024-05-01 12:00:00"), _art("b", published="2024-05-01 12:00:00")]
    ev = OnChainEvent(timestamp=NOW, symbol="CRYPTO", title="c")
    out = format_feed(arts, None, [ev], now=NOW)
    assert [r.split(";")[3] for r in out.split("|")] == ["a", "b", "c"]


def test_symbol_detection_word_boundary_and_name():
    arts = [
        _art("Ethereum upgrade ships", published="2024-05-01 10:00:00"),
        _art("BTCX token launches", published="2024-05-01 09:00:00"),
        _art("Markets calm", description="bitcoin holds 60k", published="2024-05-01 08:00:00"),
    ]
    out = format_feed(arts, ["BTC", "ETH"], [], now=NOW)
    symbols = [r.split(";")[2] for r in out.split("|")]
    assert symbols == ["ETH", "CRYPTO", "BTC"]


def test_first_requested_symbol_wins():
    arts = [_art("ETH and BTC both rally", published="2024-05-01 10:00:00")]
    assert format_feed(arts, ["ETH", "BTC"], [], now=NOW).split(";")[2] == "ETH"
    assert format_feed(arts, ["BTC", "ETH"], [], now=NOW).split(";")[2] == "BTC"


def test_missing_publish_time_falls_back_to_now():
    out = format_feed([_art("no date"), _art("bad date", published="soon")], None, [], now=NOW)
    assert _timestamps(out) == [NOW, NOW]


def test_missing_title_and_delimiters_in_title():
    out = format_feed([Article(title="", published="2024-05-01 12:00:00"),
                       _art("BTC soars!|; up 10%", published="2024-05-01 11:00:00")], None, [], now=NOW)
    records = out.split("|")
    assert records[0] == f"{NOW};NEWS;CRYPTO;No title"
    assert records[1].split(";")[3] == "BTC soars! up 10%"


def test_bad_item_is_skipped_not_fatal():
    class Broken:
        title = "x"
        description = None

        @property
        def published(self):
            raise RuntimeError("boom")

    good = _art("ok", published="2024-05-01 12:00:00")
    out = format_feed([Broken(), good], None, [], now=NOW)
    assert out == f"{NOW};NEWS;CRYPTO;ok"


def test_idempotent():
    arts = [_art(f"news {i}", published=f"2024-05-01 0{i}:00:00") for i in range(5)]
    evs = [OnChainEvent(timestamp=NOW - i * 1000, symbol="BTC", title=f"tx {i}") for i in range(3)]
    first = format_feed(arts, ["BTC"], evs, now=NOW)
    second = format_feed(arts, ["BTC"], evs, now=NOW)
    assert first == second
    ts = _timestamps(first)
    assert ts == sorted(ts, reverse=True)


def test_non_finite_publish_time_falls_back_to_now():
    arts = [
        Article.from_provider({"title": "x", "pubDate": float("nan")}),
        Article.from_provider({"title": "y", "pubDate": float("inf")}),
        Article.from_provider({"title": "z", "pubDate": float("-inf")}),
    ]
    out = format_feed(arts, None, [], now=NOW)
    assert out.split("|") == [f"{NOW};NEWS;CRYPTO;x", f"{NOW};NEWS;CRYPTO;y", f"{NOW};NEWS;CRYPTO;z"]
    assert parse_published_ts(float("nan")) is None
