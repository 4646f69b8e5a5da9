"""Logging setup shared by the client and the CLI."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure console logging for the client.

    Args:
        level: Log level name; defaults to the configured ``log_level``.
    """
    from .config import settings

    resolved_level = (level or settings.log_level or "INFO").upper()

    logging.basicConfig(
        level=getattr(logging, resolved_level, logging.INFO),
        format=LOG_FORMAT,
    )

    # httpx logs every request at INFO; the client already does that
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
