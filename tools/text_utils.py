"""Word counting and chapter text formatting."""

import re

_WORD_RE = re.compile(r"\S+")


def count_words(text: str) -> int:
    """Count whitespace-separated words in text."""
    if not text:
        return 0
    return len(_WORD_RE.findall(text))


def is_word_count_in_range(words: int, minimum: int = 1400, maximum: int = 1800) -> bool:
    """Return True when ``words`` falls inside the inclusive target band.

    Out-of-range counts are informational only; callers flag them visually.
    """
    return minimum <= words <= maximum


def format_chapter_for_copy(title: str, content: str) -> str:
    """Render a chapter as markdown for pasting elsewhere."""
    return f"# {title or ''}\n\n{content or ''}"


def preview(text: str, limit: int = 120) -> str:
    """Collapse whitespace and truncate for one-line display."""
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[:limit].rstrip() + "..."
