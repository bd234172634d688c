"""Tools package — text utilities and clipboard adapters.

The backend client lives in ``tools.backend_client`` and is imported
directly, since it depends on ``models``.
"""

from tools.text_utils import (
    count_words,
    is_word_count_in_range,
    format_chapter_for_copy,
    preview,
)
from tools.clipboard import Clipboard, SystemClipboard, DisabledClipboard

__all__ = [
    "count_words",
    "is_word_count_in_range",
    "format_chapter_for_copy",
    "preview",
    "Clipboard",
    "SystemClipboard",
    "DisabledClipboard",
]
