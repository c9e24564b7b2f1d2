#!/usr/bin/env python
"""
Server Entry Point

    python run_server.py --dev          uvicorn with reload on 127.0.0.1
    python run_server.py                uvicorn with WORKERS processes
    python run_server.py --gunicorn     gunicorn -c gunicorn.conf.py

Host and port default to API_HOST / API_PORT.
"""

import argparse
import os
import subprocess

import uvicorn

from scr_agro.config import get_settings

APP_PATH = "scr_agro.main:app"


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="SCR Agro Farms Admin Analytics API")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--dev", action="store_true", help="Single process with auto-reload")
    mode.add_argument("--gunicorn", action="store_true", help="Hand over to gunicorn")
    parser.add_argument("--host", default=settings.api_host)
    parser.add_argument("--port", type=int, default=settings.api_port)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    log_level = get_settings().monitoring.log_level.lower()

    if args.gunicorn:
        env = dict(os.environ, BIND=f"{args.host}:{args.port}")
        subprocess.run(["gunicorn", APP_PATH, "-c", "gunicorn.conf.py"], check=True, env=env)
    elif args.dev:
        uvicorn.run(APP_PATH, host="127.0.0.1", port=args.port, reload=True, reload_dirs=["scr_agro"], log_level="debug")
    else:
        uvicorn.run(
            APP_PATH,
            host=args.host,
            port=args.port,
            workers=int(os.getenv("WORKERS", 2)),
            log_level=log_level,
            proxy_headers=True,
            server_header=False,
        )


if __name__ == "__main__":
    main()
