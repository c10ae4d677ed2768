# portal/config/logger.py
import logging
import sys

from portal.config.config import settings


def _resolve_level(name: str | None) -> int:
    if not name:
        return logging.DEBUG if settings.env == "dev" else logging.INFO
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


LOG_LEVEL = _resolve_level(settings.log_level)

# use cases, parser and scripts all log through "portal"
logger = logging.getLogger("portal")
logger.setLevel(LOG_LEVEL)

_formatter = logging.Formatter(
    "%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# one set of handlers per process
if not logger.handlers:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(LOG_LEVEL)
        handler.setFormatter(_formatter)
        logger.addHandler(handler)
