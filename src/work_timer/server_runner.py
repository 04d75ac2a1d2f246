"""Run the timer HTTP API under uvicorn."""

from __future__ import annotations

import logging
import threading
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .config import TimerSettings
from .paths import get_db_path
from .webapp import create_app

logger = logging.getLogger(__name__)

DOCS_PATH = "/docs"


def api_url(host: str, port: int, path: str = "") -> str:
    # Wildcard binds are not browsable; point the browser at loopback instead.
    if host in ("0.0.0.0", "::", ""):
        host = "127.0.0.1"
    return f"http://{host}:{port}{path}"


def serve_api(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    db_path: Optional[Path] = None,
    settings: Optional[TimerSettings] = None,
    open_docs: bool = False,
    log_level: str = "info",
) -> None:
    """Serve the timer API until interrupted.

    The app owns the timer runtime, so the inactivity monitor and tick loop
    run for as long as uvicorn does.
    """
    db_path = db_path or get_db_path()
    app = create_app(db_path=db_path, settings=settings or TimerSettings())
    logger.info("Serving work timer API for %s on %s", db_path, api_url(host, port))

    if open_docs:
        # Give uvicorn a moment to bind before the browser asks for the page.
        timer = threading.Timer(1.0, _open_docs, args=(api_url(host, port, DOCS_PATH),))
        timer.daemon = True
        timer.start()

    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _open_docs(url: str) -> None:
    try:
        webbrowser.open(url)
    except Exception:
        logger.exception("Could not open %s in a browser", url)
