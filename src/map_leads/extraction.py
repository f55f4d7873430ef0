"""Pure email extraction utilities."""

from __future__ import annotations

import re

EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")


def first_email(text: str) -> str | None:
    """Return the first email-looking substring of text, as written."""
    match = EMAIL_REGEX.search(text or "")
    return match.group(0) if match else None
