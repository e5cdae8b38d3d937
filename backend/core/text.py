"""
Text helpers for slugs, excerpts and reading time.
"""

import html
import math
import re

WORDS_PER_MINUTE = 200


def slugify(text: str) -> str:
    """Convert text to URL-safe slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    text = re.sub(r"^-+|-+$", "", text)
    return text[:200]


def strip_html(content: str) -> str:
    """Extract plain text from HTML content."""
    text = re.sub(r"<[^>]*>", " ", content)
    text = html.unescape(text).replace("\xa0", " ")
    return re.sub(r"\s+", " ", text).strip()


def truncate(text: str, length: int = 100) -> str:
    """Cut text to ``length`` characters, marking the cut with an ellipsis."""
    if len(text) <= length:
        return text
    return text[:length].rstrip() + "..."


def generate_excerpt(content: str, length: int = 150) -> str:
    """Plain-text excerpt of an HTML body."""
    return truncate(strip_html(content), length)


def count_words(content: str) -> int:
    return len(strip_html(content).split())


def calculate_reading_time(content: str) -> int:
    """Estimated reading time in minutes (200 wpm, at least one minute)."""
    return max(1, math.ceil(count_words(content) / WORDS_PER_MINUTE))


def escape_like(value: str) -> str:
    """Escape LIKE wildcards for safe use in SQL LIKE/ILIKE patterns."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
