from __future__ import annotations

import logging
import sys

from sample_buckets.config import load_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# httpx logs every cluster request at INFO; the adapters already log them at debug.
_HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: int | None = None) -> None:
    """Log to stderr at ``level`` (default: ``SAMPLE_BUCKETS_LOG_LEVEL``).

    HTTP client loggers stay at WARNING unless debug output was asked for.
    A root logger already set up by uvicorn or pytest keeps its handlers.
    """
    if level is None:
        level = load_settings().log_level
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger().setLevel(level)
    client_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _HTTP_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)
