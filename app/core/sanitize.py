"""Input sanitization for free-text fields and emails."""

import re

import nh3

# Characters kept in an email after markup is stripped.
_EMAIL_DISALLOWED = re.compile(r"[^\w@.\-+]")
_EMAIL_SHAPE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def sanitize_text(value: str | None) -> str:
    """Strip all HTML from a plain-text field (names, titles).

    Tags are removed and the contents of script/style elements are dropped.
    """
    if not isinstance(value, str):
        return ""
    return nh3.clean(value.strip(), tags=set(), attributes={}).strip()


def sanitize_email(value: str | None) -> str:
    """Normalize an email for storage and lookup: no markup, safe chars, lower case."""
    cleaned = sanitize_text(value)
    return _EMAIL_DISALLOWED.sub("", cleaned).lower()


def is_valid_email(value: str) -> bool:
    return bool(value) and value.count("@") == 1 and bool(_EMAIL_SHAPE.match(value))
