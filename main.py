#!/usr/bin/env python3
"""启动脚本：通过 `python main.py --host 127.0.0.1 --port 8000` 启动八卦起心后端。

示例：
    python main.py --port 8000 --reload --cast-delay 1.5

起卦会话保存在进程内，多 worker 时各进程互不相通。
"""

from __future__ import annotations

import argparse
import logging
import os
import sys


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Run the Bagua FastAPI server with uvicorn.")
    p.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    p.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    p.add_argument("--reload", action="store_true", help="Enable auto-reload (for development)")
    p.add_argument("--cast-delay", type=float, default=None, help="Override BAGUA_CAST_DELAY (seconds)")
    p.add_argument("--log-level", default="info", help="Log level (debug, info, warning, error)")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.cast_delay is not None:
        os.environ["BAGUA_CAST_DELAY"] = str(args.cast_delay)

    try:
        import uvicorn
    except ModuleNotFoundError:
        print("uvicorn is required to run the server. Install dependencies: pip install -e .", file=sys.stderr)
        sys.exit(1)

    try:
        # 字符串形式便于 --reload 重新导入
        uvicorn.run(
            "bagua.fastapi.app:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=args.log_level,
        )
    except ModuleNotFoundError as e:
        print("Failed to import application modules. Missing dependency:", e.name, file=sys.stderr)
        print("Install dependencies: pip install -e .", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
