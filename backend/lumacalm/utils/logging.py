import logging
import sys

from lumacalm.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | lumacalm | %(name)s | %(message)s"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine")


def setup_logging(level: str | None = None) -> None:
    """Configure application-wide logging.

    Falls back to LOG_LEVEL from settings when no level is given.
    """
    level = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
