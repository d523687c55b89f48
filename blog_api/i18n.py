"""
Message catalogs and locale resolution.

Catalogs live in ``blog_api/locales/<lang>.json`` as nested objects and
are addressed with dotted keys, e.g. ``translate("article.notFound",
"vi")``.  Lookup falls back to the default language and finally to the
key itself, so a missing translation never raises.
"""
import json
import logging
from functools import lru_cache
from pathlib import Path

from blog_api.config import settings

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"


@lru_cache
def _load_catalogs() -> dict[str, dict]:
    catalogs: dict[str, dict] = {}
    for path in sorted(LOCALES_DIR.glob("*.json")):
        with path.open(encoding="utf-8") as fh:
            catalogs[path.stem] = json.load(fh)
    logger.debug("Loaded message catalogs: %s", ", ".join(catalogs))
    return catalogs


def supported_languages() -> list[str]:
    return list(_load_catalogs())


def _lookup(catalog: dict, key: str) -> str | None:
    node = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def translate(key: str, locale: str | None = None, **params) -> str:
    """Return the message for *key* in *locale*, formatted with *params*."""
    catalogs = _load_catalogs()
    message = None
    for lang in (locale, settings.DEFAULT_LANGUAGE):
        if lang and lang in catalogs:
            message = _lookup(catalogs[lang], key)
            if message is not None:
                break
    if message is None:
        logger.debug("Missing translation for key=%r locale=%r", key, locale)
        return key
    if params:
        try:
            return message.format(**params)
        except (KeyError, IndexError):
            return message
    return message


def resolve_locale(accept_language: str | None) -> str:
    """
    Pick the best supported language from an ``Accept-Language`` header.

    Entries are ordered by their ``q`` weight; region subtags are ignored
    (``vi-VN`` matches ``vi``).  Falls back to ``settings.DEFAULT_LANGUAGE``.
    """
    if not accept_language:
        return settings.DEFAULT_LANGUAGE

    supported = set(supported_languages())
    weighted: list[tuple[float, int, str]] = []
    for position, part in enumerate(accept_language.split(",")):
        tag, _, params = part.strip().partition(";")
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        weighted.append((-quality, position, tag.strip().lower()))

    for _, _, tag in sorted(weighted):
        primary = tag.split("-")[0]
        if primary in supported:
            return primary
    return settings.DEFAULT_LANGUAGE
