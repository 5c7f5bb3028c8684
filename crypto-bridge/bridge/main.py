# bridge/main.py
# 启动入口：读配置 -> 组装 FastAPI 应用 -> uvicorn 常驻
#   python -m bridge.main --port 3000

from __future__ import annotations
import argparse
import logging

import uvicorn

from .config import load_cfg
from .web import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Crypto news + Arkham on-chain bridge for PineScript")
    parser.add_argument("--config", default=None, help="YAML 配置路径，默认 ops/config.yml")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=None, help="覆盖配置/环境变量里的端口")
    args = parser.parse_args(argv)

    cfg = load_cfg(args.config)
    port = args.port or int(cfg["bridge"].get("port", 3000))

    app = create_app(cfg)
    logger.info("listening on %s:%d", args.host, port)
    uvicorn.run(app, host=args.host, port=port, log_level="info")


if __name__ == "__main__":
    main()
