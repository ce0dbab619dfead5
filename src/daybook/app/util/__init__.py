"""Utility helpers for application-wide functionality."""

from .number import coerce_int
from .text import count_words, is_blank

__all__ = [
    "coerce_int",
    "count_words",
    "is_blank",
]
