"""Small helpers for limits and pages supplied by clients.

Query strings arrive as text.  A value is read by its leading integer
("25", " 25 ", "25rows"); anything else counts as not given.
"""

import re

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: int | str | None) -> int | None:
    """Leading integer of *value*, or None when there is none."""
    if value is None or isinstance(value, int):
        return value
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def clamp_limit(limit: int | str | None, default: int, maximum: int = 100) -> int:
    """Clamp a requested result size to [1, maximum].

    Missing, unparsable and zero limits mean *default*.
    """
    value = parse_int(limit)
    if not value:
        return default
    return min(max(1, value), maximum)


def clamp_page(page: int | str | None) -> int:
    value = parse_int(page)
    if value is None or value < 1:
        return 1
    return value
