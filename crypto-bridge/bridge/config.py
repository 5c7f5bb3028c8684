# 配置：ops/config.yml 可选，不存在就用默认；密钥和端口从环境变量读

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]  # crypto-bridge/

DEFAULT_CFG = {
    "bridge": {
        "version": "2.0",
        "port": 3000,
        "newsdata_api_key": "",
        "base_url": "https://newsdata.io/api/1/news",
        "cache_ttl_minutes": 30,
        "cache_max_entries": 50,
        "max_requests_per_day": 200,
        "max_results_per_request": 10,
        "request_timeout_sec": 10,
        "buffer_capacity": 100,
        "onchain_window_hours": 24,
        "max_symbols": 5,
    }
}


def load_cfg(path: Optional[Union[str, Path]] = None) -> dict:
    """
    读取 YAML 配置，和 DEFAULT_CFG 做一层浅合并；再用环境变量覆盖：
      NEWSDATA_API_KEY, PORT
    """
    cfg_path = Path(path) if path else ROOT / "ops" / "config.yml"
    out = {**DEFAULT_CFG, "bridge": dict(DEFAULT_CFG["bridge"])}

    if cfg_path.exists():
        try:
            data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
            if not isinstance(data, dict):
                data = {}
            out.update({k: v for k, v in data.items() if k != "bridge"})
            section = data.get("bridge") or {}
            if isinstance(section, dict):
                out["bridge"].update(section)
            else:
                logger.warning("[config] %s: bridge section is %s, ignored", cfg_path, type(section).__name__)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("[config] failed to read %s, using defaults. err=%s", cfg_path, e)

    b = out["bridge"]
    api_key = os.environ.get("NEWSDATA_API_KEY", "").strip()
    if api_key:
        b["newsdata_api_key"] = api_key
    port = os.environ.get("PORT", "").strip()
    if port.isdigit():
        b["port"] = int(port)
    return out
