"""Logging setup for the CLI and server."""
import logging
import sys

PACKAGE_LOGGER = "trademind"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Client libraries that log every request at INFO/DEBUG
NOISY_LOGGERS = ("openai", "httpx", "httpcore")


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Send trademind logs to stderr.

    Only the package logger gets a handler, so uvicorn and other hosts
    keep their own root configuration. verbose switches trademind to
    DEBUG and lets the HTTP client libraries through at INFO.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False

    # Re-running (tests, repeated main() calls) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)

    return logger
