"""
Date normalization.

The spreadsheet stores dates in a human form ("1 Mar 2026") while forms and
the API use sortable keys ("2026-03-01"). Everything is compared on the key.
"""
import calendar
import datetime
import re
from typing import List, Optional, Tuple

MONTHS: List[Tuple[str, str]] = [
    ("January", "Jan"),
    ("February", "Feb"),
    ("March", "Mar"),
    ("April", "Apr"),
    ("May", "May"),
    ("June", "Jun"),
    ("July", "Jul"),
    ("August", "Aug"),
    ("September", "Sep"),
    ("October", "Oct"),
    ("November", "Nov"),
    ("December", "Dec"),
]

# "january" -> 1, "jan" -> 1, ...
_MONTH_LOOKUP = {}
for _i, (_name, _abbr) in enumerate(MONTHS, start=1):
    _MONTH_LOOKUP[_name.lower()] = _i
    _MONTH_LOOKUP[_abbr.lower()] = _i

_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_HUMAN_RE = re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\s+(\d{4})$")
_LABEL_RE = re.compile(r"^([A-Za-z]+)\s+(\d{4})$")


def _make_key(year: int, month: int, day: int) -> Optional[str]:
    try:
        return datetime.date(year, month, day).isoformat()
    except ValueError:
        return None


def to_key(value: Optional[str]) -> Optional[str]:
    """
    Convert a date string to its canonical ``YYYY-MM-DD`` key.

    Args:
        value: Either ``YYYY-MM-DD`` or ``D Mon YYYY`` (abbreviation or full
            month name, any case)

    Returns:
        Canonical key, or None if the string matches neither form or names
        an impossible date
    """
    if not value:
        return None
    s = value.strip()

    m = _ISO_RE.match(s)
    if m:
        return _make_key(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _HUMAN_RE.match(s)
    if m:
        month = _MONTH_LOOKUP.get(m.group(2).lower())
        if month is None:
            return None
        return _make_key(int(m.group(3)), month, int(m.group(1)))

    return None


def to_display(key: str) -> str:
    """``2026-03-01`` -> ``1 Mar 2026``. Unparseable input is returned as-is."""
    canonical = to_key(key)
    if canonical is None:
        return key
    d = datetime.date.fromisoformat(canonical)
    return f"{d.day} {MONTHS[d.month - 1][1]} {d.year}"


def parse_month_label(label: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    Parse a month label such as ``March 2026``.

    Returns:
        (year, month) tuple, or None if the label is not recognised
    """
    if not label:
        return None
    m = _LABEL_RE.match(label.strip())
    if not m:
        return None
    month = _MONTH_LOOKUP.get(m.group(1).lower())
    if month is None:
        return None
    return int(m.group(2)), month


def month_label(year: int, month: int) -> str:
    return f"{MONTHS[month - 1][0]} {year}"


def normalize_month_label(label: Optional[str]) -> Optional[str]:
    """``mar 2026`` -> ``March 2026``; None when unparseable."""
    parsed = parse_month_label(label)
    if parsed is None:
        return None
    return month_label(*parsed)


def month_of(key: str) -> Optional[str]:
    canonical = to_key(key)
    if canonical is None:
        return None
    d = datetime.date.fromisoformat(canonical)
    return month_label(d.year, d.month)


def month_days(label: str) -> List[str]:
    """
    Every date key in a month.

    Args:
        label: Month label, e.g. ``March 2026``

    Returns:
        List of ``YYYY-MM-DD`` keys in calendar order; empty for a bad label
    """
    parsed = parse_month_label(label)
    if parsed is None:
        return []
    year, month = parsed
    n = calendar.monthrange(year, month)[1]
    return [datetime.date(year, month, day).isoformat() for day in range(1, n + 1)]
