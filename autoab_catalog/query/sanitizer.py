"""Escape user input for use as a literal regex fragment."""

import re

# The regex metacharacters that must be matched literally.
_METACHARACTERS = re.compile(r"[.*+?^${}()|\[\]\\]")


def escape(raw: str) -> str:
    """Backslash-escape every regex metacharacter in *raw*.

    Only ``. * + ? ^ $ { } ( ) | [ ] \\`` are escaped; all other characters
    (spaces, hyphens, ...) pass through unchanged.  The function is not
    idempotent: escaping its own output escapes the inserted backslashes
    again.

    >>> escape("C1q (complement)")
    'C1q \\\\(complement\\\\)'
    """
    return _METACHARACTERS.sub(r"\\\g<0>", raw)


def clean(raw: str | None) -> str | None:
    """Trim *raw*; blank or missing input means "no filter" and yields None."""
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def contains_pattern(raw: str | None) -> str | None:
    """Pattern for a case-insensitive substring match, or None if blank."""
    value = clean(raw)
    if value is None:
        return None
    return escape(value)
