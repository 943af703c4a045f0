"""Query normalisation for the launcher search prefix."""

from __future__ import annotations

DEFAULT_PREFIX = "stk "


def normalize_query(raw: str, prefix: str = DEFAULT_PREFIX) -> str | None:
    """Return the trimmed search term, or ``None`` when the query is not for us or is empty."""

    if not raw.startswith(prefix):
        return None
    term = raw[len(prefix):].strip()
    return term or None


__all__ = ["DEFAULT_PREFIX", "normalize_query"]
