#!/usr/bin/env python3
"""
Production startup: run the release phase (migrations + seed), then exec
gunicorn so it becomes PID 1 and receives signals directly.

Usage:
    python scripts/start.py
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

logger = logging.getLogger("markeng.start")


def _port() -> str:
    port = (os.environ.get("PORT") or "").strip()
    if not port:
        logger.warning("PORT not set, using default 8080")
        return "8080"
    try:
        if not 1 <= int(port) <= 65535:
            raise ValueError(port)
    except ValueError:
        logger.error("Invalid PORT value %r. Must be integer 1-65535.", port)
        sys.exit(1)
    return port


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = _port()

    from scripts.release import run_release

    try:
        run_release()
    except Exception:
        logger.exception("Release failed")
        sys.exit(1)

    logger.info("Starting gunicorn on 0.0.0.0:%s", port)
    os.execvp(
        "gunicorn",
        [
            "gunicorn",
            "app.wsgi:app",
            "--bind", f"0.0.0.0:{port}",
            "--workers", os.environ.get("WEB_CONCURRENCY", "2"),
            "--timeout", "60",
            "--preload",
            "--access-logfile", "-",
            "--error-logfile", "-",
        ],
    )


if __name__ == "__main__":
    main()
