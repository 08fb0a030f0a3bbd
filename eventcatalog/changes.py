import logging
from typing import Any, Mapping

from bs4 import BeautifulSoup

from eventcatalog.models import COMPARE_FIELDS

logger = logging.getLogger(__name__)


def has_changed(existing: Mapping[str, Any], incoming: Mapping[str, Any]) -> bool:
    """
    True if any compared attribute differs after trimming.

    A missing field counts as "", so clearing a value is a change.
    """
    for name in COMPARE_FIELDS:
        old = _text(existing.get(name))
        new = _text(incoming.get(name))
        if old != new:
            logger.debug("Field changed: %s (%r -> %r)", name, old, new)
            return True

    if plain_text(_text(existing.get("description"))) != plain_text(_text(incoming.get("description"))):
        logger.debug("Field changed: description")
        return True

    return False


def plain_text(html: str) -> str:
    if not html:
        return ""
    if "<" not in html:
        return " ".join(html.split())
    return BeautifulSoup(html, "lxml").get_text(" ", strip=True)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
