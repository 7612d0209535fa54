import logging
import sys
from typing import Optional, TextIO, Union

LOG_FORMAT = "%(asctime)s %(levelname)s console [%(name)s] %(message)s"

# httpx logs every request at INFO; the api client already logs what matters.
_QUIET = {"httpx": logging.WARNING, "httpcore": logging.WARNING}


class _ConsoleHandler(logging.StreamHandler):
    pass


def resolve_level(level: Union[str, int, None]) -> int:
    """Numeric levels pass through; unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level or "").strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: Union[str, int] = "INFO", stream: Optional[TextIO] = None) -> None:
    """
    Install the console handler on the root logger.
    A second call only updates the level.
    """
    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    if any(isinstance(h, _ConsoleHandler) for h in root.handlers):
        return

    handler = _ConsoleHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    for name, quiet_level in _QUIET.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
