# healthchat/logging_config.py
"""
Logging setup for the relay.

`healthchat.main` calls `configure_logging(settings.log_level)` at import,
so both `uvicorn healthchat.main:app` and the `healthchat` script log the
same way. Modules log through `logging.getLogger(__name__)`; request logs
carry `session=<id>` so one conversation can be grepped out of stdout.
"""

import logging
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# The OpenAI and Anthropic SDKs log each HTTP round trip through httpx.
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


class _RelayHandler(logging.StreamHandler):
    """Stdout handler; its type marks the root logger as configured."""


def configure_logging(level: str = "INFO") -> logging.Handler:
    """
    Route relay logs to stdout at `level`.

    Parameters
    ----------
    level : str
        Level name from `LOG_LEVEL`, any case (e.g. "debug").

    Returns
    -------
    logging.Handler
        The relay's root handler. A second call reuses it and only
        updates the level, so uvicorn's reloader does not double output.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = next((h for h in root.handlers if isinstance(h, _RelayHandler)), None)
    if handler is None:
        handler = _RelayHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
