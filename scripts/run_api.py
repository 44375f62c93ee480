#!/usr/bin/env python3
"""
启动分享服务 API

用法:
  python scripts/run_api.py
  python scripts/run_api.py --port 9000 --host 127.0.0.1
  PORT=9000 DATA_DIR=/srv/share python scripts/run_api.py
"""

import argparse
import sys
from pathlib import Path

# 项目根目录加入 path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main() -> None:
    from config.settings import settings
    parser = argparse.ArgumentParser(description="Run Siyuan Share API")
    parser.add_argument("--host", default=settings.server.host, help="Bind host")
    parser.add_argument("--port", type=int, default=settings.server.port, help="Bind port (default: $PORT or 8080)")
    parser.add_argument("--reload", action="store_true", help="Enable reload (dev)")
    args = parser.parse_args()

    settings.print_info()

    import uvicorn
    if args.reload:
        uvicorn.run("share_api.api.server:app", host=args.host, port=args.port, reload=True)
    else:
        from share_api.api.server import app
        uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
