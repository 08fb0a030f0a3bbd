import re

# Applied in order, whole words only
_REPLACEMENTS = [
    (re.compile(r"\bstreet\b"), "st"),
    (re.compile(r"\bavenue\b"), "ave"),
    (re.compile(r"\bboulevard\b"), "blvd"),
    (re.compile(r"\bdrive\b"), "dr"),
    (re.compile(r"\broad\b"), "rd"),
    (re.compile(r"\blane\b"), "ln"),
    (re.compile(r"\bcourt\b"), "ct"),
    (re.compile(r"\bsuite\b"), "ste"),
    (re.compile(r"\bapartment\b"), "apt"),
    (re.compile(r"\bhighway\b"), "hwy"),
    (re.compile(r"\bparkway\b"), "pkwy"),
    (re.compile(r"\bplace\b"), "pl"),
    (re.compile(r"\bcircle\b"), "cir"),
    (re.compile(r"[.,#]"), ""),
]
_WHITESPACE = re.compile(r"\s+")


def normalize_address(address: str) -> str:
    """Canonical form of a street address, for equality checks only."""
    value = (address or "").strip().lower()
    for pattern, replacement in _REPLACEMENTS:
        value = pattern.sub(replacement, value)
    return _WHITESPACE.sub(" ", value).strip()


def normalize_city(city: str) -> str:
    return (city or "").strip().lower()
