"""
Helpers for deciding whether two observations describe the same event.

- core_title() / titles_match(): compare titles while ignoring tour names,
  openers, venue suffixes and status markers ("SOLD OUT").
- normalize_ticket_url(): canonical ticket link with tracking parameters removed.
- within_time_window(): tolerance check between two start datetimes.
"""

import re
from datetime import datetime
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from dateutil import parser as dateparser

_BRACKETS = re.compile(r"\([^)]*\)|\[[^\]]*\]|\{[^}]*\}")
_MARKERS = re.compile(r"\b(?:sold[\s-]*out|cancell?ed|postponed|rescheduled)\b")
_SUFFIX = re.compile(r"\s+(?:-|–|—|\||@|at|with|w/|feat\.?|ft\.?|featuring)\s+")
_PUNCT = re.compile(r"[^\w\s]|_")
_ARTICLE = re.compile(r"^(?:the|a|an)\s+")
_WHITESPACE = re.compile(r"\s+")

_TRACKING_PARAMS = {
    "fbclid", "gclid", "dclid", "msclkid", "mc_cid", "mc_eid",
    "_ga", "_gl", "igshid", "ref_", "aff", "affiliate",
}

_HAS_TIME = re.compile(r"[T\s]\d{1,2}:\d{2}")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


def core_title(title: str) -> str:
    value = (title or "").lower()
    value = _BRACKETS.sub(" ", value)
    value = _MARKERS.sub(" ", value)
    value = _SUFFIX.split(value, maxsplit=1)[0]
    value = _PUNCT.sub(" ", value)
    value = _WHITESPACE.sub(" ", value).strip()
    return _ARTICLE.sub("", value)


def titles_match(a: str, b: str) -> bool:
    core_a = core_title(a)
    return bool(core_a) and core_a == core_title(b)


def normalize_ticket_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        return ""
    if "://" not in url and not url.startswith("//"):
        url = "//" + url
    parts = urlsplit(url)
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not _is_tracking_param(key)
    ]
    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        parts.path.rstrip("/"),
        urlencode(sorted(query)),
        "",
    ))


def _is_tracking_param(key: str) -> bool:
    key = key.lower()
    return key.startswith("utm_") or key in _TRACKING_PARAMS


def date_part(value: str) -> str:
    """Return the calendar day ("YYYY-MM-DD") of a date or datetime string."""
    value = (value or "").strip()
    if not value:
        return ""
    m = _ISO_DATE.match(value)
    if m:
        return m.group(0)
    parsed = _parse(value)
    return parsed.date().isoformat() if parsed else value


def time_part(value: str) -> str:
    """Return "HH:MM" from a datetime string that carries a clock time, else ""."""
    value = (value or "").strip()
    if not _HAS_TIME.search(value):
        return ""
    parsed = _parse(value)
    return parsed.strftime("%H:%M") if parsed else ""


def normalize_date(value: str) -> str:
    """Any parseable date ("June 1, 2025", "2025-06-01T20:00") -> "YYYY-MM-DD"."""
    value = (value or "").strip()
    if not value:
        return ""
    parsed = _parse(value)
    return parsed.date().isoformat() if parsed else value


def normalize_time(value: str) -> str:
    """Any parseable clock time ("8pm", "20:00:00") -> "HH:MM"."""
    value = (value or "").strip()
    if not value:
        return ""
    parsed = _parse(f"2000-01-01 {value}")
    return parsed.strftime("%H:%M") if parsed else value


def within_time_window(first: str, second: str, window_hours: float = 2) -> bool:
    """
    True when two start datetimes are at most window_hours apart.

    Either side missing a clock time (or failing to parse) counts as a match:
    a date-only listing cannot tell an early show from a late one.
    """
    if not first or not second:
        return True
    if not _HAS_TIME.search(first) or not _HAS_TIME.search(second):
        return True

    dt1 = _parse(first)
    dt2 = _parse(second)
    if dt1 is None or dt2 is None:
        return True
    if (dt1.tzinfo is None) != (dt2.tzinfo is None):
        dt1 = dt1.replace(tzinfo=None)
        dt2 = dt2.replace(tzinfo=None)

    diff_hours = abs((dt1 - dt2).total_seconds()) / 3600
    return diff_hours <= window_hours


def _parse(value: str) -> Optional[datetime]:
    try:
        return dateparser.parse(value)
    except (ValueError, OverflowError):
        return None
