"""Slug, tag and read-time helpers for content payloads."""

import math
import re
import unicodedata
from typing import Iterable, List, Optional, Union

WORDS_PER_MINUTE = 200


def slugify(value: str) -> str:
    """
    Lowercase, strip punctuation and hyphenate.

    >>> slugify("The Future of AI: Healthcare!")
    'the-future-of-ai-healthcare'
    """
    normalized = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    normalized = re.sub(r"[^\w\s-]", "", normalized.lower())
    return re.sub(r"[-\s_]+", "-", normalized).strip("-")


def normalize_tags(value: Union[str, Iterable[str], None]) -> Optional[List[str]]:
    """Accept a list or a comma-separated string; drop blanks and duplicates."""
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else list(value)
    tags: List[str] = []
    for item in items:
        tag = str(item).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def estimate_read_time(*texts: Optional[str]) -> int:
    """Minutes to read, at least 1."""
    words = sum(len(t.split()) for t in texts if t)
    return max(1, math.ceil(words / WORDS_PER_MINUTE))
