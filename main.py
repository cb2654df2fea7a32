#!/usr/bin/env python3
"""
StudyHub -- accounts, session tokens and a study-material catalog.

Usage:
  python main.py
  python main.py --port 8000
  python main.py --host 0.0.0.0 --upload-dir /srv/studyhub/uploads
  python main.py --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY    JWT signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG         true to auto-generate a throwaway SECRET_KEY for local development.
  PORT          Listen port (default 5000).
  UPLOAD_DIR    Directory holding uploaded materials (default ./uploads).
"""

import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="studyhub",
        description="Run the StudyHub API server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", help="Bind address (overrides HOST)")
    parser.add_argument("--port", type=int, help="Listen port (overrides PORT)")
    parser.add_argument("--upload-dir", help="Upload directory (overrides UPLOAD_DIR)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    # Overrides go through the environment so Settings stays the only reader
    # of configuration, including inside reloader worker processes.
    if args.host:
        os.environ["HOST"] = args.host
    if args.port:
        os.environ["PORT"] = str(args.port)
    if args.upload_dir:
        os.environ["UPLOAD_DIR"] = args.upload_dir

    from core.config import get_settings

    settings = get_settings()
    uvicorn.run("asgi:app", host=settings.host, port=settings.port, reload=args.reload)


if __name__ == "__main__":
    main()
