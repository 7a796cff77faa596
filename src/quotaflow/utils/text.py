"""Text helpers for comparing step descriptions."""

from __future__ import annotations

import re
from typing import Optional, Sequence, Tuple

UUID_PATTERN = re.compile(
    r"\b[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}\b", re.IGNORECASE
)
EMAIL_PATTERN = re.compile(r"\b[\w.+-]+@[\w-]+\.[\w.]+\b")
# item_123, user-42, order#7
IDENTIFIER_PATTERN = re.compile(r"\b[a-z]+[_#-]\d+\b", re.IGNORECASE)
DIGITS_PATTERN = re.compile(r"\d+")
WHITESPACE_PATTERN = re.compile(r"\s+")

# Keyword families that mark functional boundaries; order defines precedence.
FUNCTIONAL_CATEGORIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Validation", ("validate", "check", "verify")),
    ("Processing", ("process", "transform", "convert")),
    ("Analysis", ("analyze", "analyse", "calculate", "compute")),
    ("Data Retrieval", ("fetch", "retrieve", "query", "get")),
    ("Data Storage", ("store", "save", "persist", "write")),
    ("Formatting", ("format", "render", "display", "output")),
)


def normalize_description(description: str) -> str:
    """Reduce a description to its operation pattern.

    Lowercases and strips identifiers, UUIDs, emails and digits so that
    "Fetch order_12" and "fetch order_993" compare equal.
    """
    text = description.lower()
    text = UUID_PATTERN.sub(" ", text)
    text = EMAIL_PATTERN.sub(" ", text)
    text = IDENTIFIER_PATTERN.sub(" ", text)
    text = DIGITS_PATTERN.sub(" ", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip(" .,:;#-_")


def functional_category(description: str) -> Optional[str]:
    """Name of the first keyword family the description mentions, if any."""
    words = set(re.findall(r"[a-z]+", description.lower()))
    for name, keywords in FUNCTIONAL_CATEGORIES:
        if any(_mentions(words, keyword) for keyword in keywords):
            return name
    return None


def _mentions(words: set[str], keyword: str) -> bool:
    return any(word == keyword or word.startswith(keyword) for word in words)


def matches_any(description: str, keywords: Sequence[str]) -> bool:
    words = set(re.findall(r"[a-z]+", description.lower()))
    return any(_mentions(words, keyword) for keyword in keywords)
