"""Helpers for measuring entry text."""

from __future__ import annotations


def is_blank(content: str | None) -> bool:
    """True when *content* is empty or whitespace-only."""

    return not (content or "").strip()


def count_words(content: str | None) -> int:
    """Count whitespace-delimited tokens; blank text has zero words."""

    return len((content or "").split())


__all__ = ["is_blank", "count_words"]
