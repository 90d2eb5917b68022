"""smart_spotlight.host.main

Local Spotlight host daemon.

Owns the provider registry, query history, model settings and the prompt
engine, and serves them to the UI over a localhost API.

Run:
  python -m smart_spotlight.host
  # or: smart-spotlight-host
"""

from __future__ import annotations

import os

import uvicorn

from smart_spotlight.core.config import configure_logging, is_dev_mode
from smart_spotlight.host.api import create_app


def main() -> None:
    configure_logging()
    host = os.environ.get("SMART_SPOTLIGHT_HOST", "127.0.0.1")
    port = int(os.environ.get("SMART_SPOTLIGHT_PORT", "17123"))

    app = create_app()
    uvicorn.run(app, host=host, port=port, log_level="debug" if is_dev_mode() else "info")


if __name__ == "__main__":
    main()
