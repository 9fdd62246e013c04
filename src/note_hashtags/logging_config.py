"""Configure logging for the application."""

import logging
import sys


def setup_logging(debug: bool = False) -> None:
    """Send note_hashtags logs to stderr, replacing any earlier handler."""
    level = logging.DEBUG if debug else logging.INFO
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    app_logger = logging.getLogger("note_hashtags")
    app_logger.setLevel(level)
    app_logger.handlers.clear()
    app_logger.addHandler(handler)

    # Suppress noisy httpx logs unless in debug mode
    httpx_level = logging.DEBUG if debug else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_level)
    logging.getLogger("httpcore").setLevel(httpx_level)
