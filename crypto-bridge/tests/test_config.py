# -*- coding: utf-8 -*-
"""
tests/test_config.py
配置加载：默认值、YAML 浅合并、环境变量覆盖。
"""

from bridge.config import load_cfg


def test_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.delenv("NEWSDATA_API_KEY", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    cfg = load_cfg(tmp_path / "missing.yml")
    assert cfg["bridge"]["cache_ttl_minutes"] == 30
    assert cfg["bridge"]["max_requests_per_day"] == 200
    assert cfg["bridge"]["port"] == 3000


def test_yaml_merge_and_env_override(tmp_path, monkeypatch):
    p = tmp_path / "config.yml"
    p.write_text("bridge:\n  max_requests_per_day: 50\n  buffer_capacity: 10\n", encoding="utf-8")
    monkeypatch.setenv("NEWSDATA_API_KEY", "abc123")
    monkeypatch.setenv("PORT", "8080")

    cfg = load_cfg(p)
    b = cfg["bridge"]
    assert b["max_requests_per_day"] == 50
    assert b["buffer_capacity"] == 10
    assert b["cache_max_entries"] == 50
    assert b["newsdata_api_key"] == "abc123"
    assert b["port"] == 8080


def test_broken_yaml_falls_back(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    p = tmp_path / "config.yml"
    p.write_text("bridge: [unclosed\n", encoding="utf-8")
    assert load_cfg(p)["bridge"]["port"] == 3000


def test_non_mapping_bridge_section_ignored(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    p = tmp_path / "config.yml"
    p.write_text("bridge: 5\n", encoding="utf-8")
    cfg = load_cfg(p)
    assert cfg["bridge"]["port"] == 3000
    assert cfg["bridge"]["cache_max_entries"] == 50
