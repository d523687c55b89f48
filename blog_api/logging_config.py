"""
Logging setup.

Every module logs through ``logging.getLogger(__name__)``; this module
only decides levels and makes sure a handler exists when the app runs
outside uvicorn (tests, scripts).
"""
import logging
import sys

from blog_api.config import settings

_SQL_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite")
_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


def _parse_level(raw: str) -> int:
    numeric = getattr(logging, raw.upper(), None)
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def setup_logging() -> None:
    """Configure log levels from settings.  Call once at startup."""
    root_level = _parse_level(settings.LOG_LEVEL)
    root = logging.getLogger()
    root.setLevel(root_level)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
        root.addHandler(handler)

    sql_level = _parse_level(settings.LOG_LEVEL_SQL)
    for name in _SQL_LOGGERS:
        logging.getLogger(name).setLevel(sql_level)
    for name in _SERVER_LOGGERS:
        logging.getLogger(name).setLevel(root_level)

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s sql=%s", settings.LOG_LEVEL, settings.LOG_LEVEL_SQL
    )
