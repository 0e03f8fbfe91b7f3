"""URL-safe slug generation utilities."""

import re
import unicodedata

FALLBACK_SLUG = "team"


def slugify(text: str) -> str:
    """Convert text to a URL-safe slug (lowercase, hyphens, no special chars).

    Args:
        text: Text to slugify (e.g. "Ice Storm U12").

    Returns:
        Slugified text (e.g. "ice-storm-u12"), or "team" when nothing survives.
    """
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = text.lower().strip()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-") or FALLBACK_SLUG
