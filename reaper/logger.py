import logging
import os
import sys

BASE_NAME = "reaper"
ENV_LEVEL = "REAPER_LOG_LEVEL"
ENV_CATS = "REAPER_LOG_CATS"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

_FORMAT = "[%(asctime)s] %(levelname)s %(category)s: %(message)s"


class _CategoryFilter(logging.Filter):
    """Tags each record with its category (the child logger name).

    With `allowed` set, only those categories pass.
    """

    def __init__(self, allowed: set[str] | None = None) -> None:
        super().__init__()
        self.allowed = allowed

    def filter(self, record: logging.LogRecord) -> bool:
        # reaper.dispatcher -> dispatcher; the base logger itself -> reaper
        record.category = record.name.rsplit(".", 1)[-1]
        return self.allowed is None or record.category in self.allowed


def _parse_categories(raw: str | None) -> set[str] | None:
    cats = {c.strip() for c in (raw or "").split(",") if c.strip()}
    return cats or None


def setup_logger(level: int = logging.INFO) -> logging.Logger:
    """Configure the `reaper` logger from REAPER_LOG_LEVEL / REAPER_LOG_CATS.

    Safe to call repeatedly; main.py calls it again after moving the CLI
    options into the environment.
    """
    logger = logging.getLogger(BASE_NAME)
    env_level = (os.getenv(ENV_LEVEL) or "").strip().lower()
    logger.setLevel(_LEVELS.get(env_level, level))

    handler = next(
        (h for h in logger.handlers if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(handler)

    handler.filters.clear()
    handler.addFilter(_CategoryFilter(_parse_categories(os.getenv(ENV_CATS))))

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
