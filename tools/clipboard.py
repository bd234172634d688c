"""System clipboard adapter.

The clipboard is owned by the operating system and shared with every other
application, so writes are single-shot: write, confirm, and report failure
without retrying.
"""

import asyncio
import logging
from typing import Protocol, runtime_checkable

import pyperclip

from config.exceptions import ClipboardError

logger = logging.getLogger(__name__)


@runtime_checkable
class Clipboard(Protocol):
    async def write(self, text: str) -> None:
        """Place text on the clipboard or raise ClipboardError."""
        ...


class SystemClipboard:
    """Clipboard backed by pyperclip, run off the event loop."""

    async def write(self, text: str) -> None:
        try:
            await asyncio.to_thread(pyperclip.copy, text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"Clipboard write failed: {e}") from e
        logger.debug("Copied %d chars to clipboard", len(text))


class DisabledClipboard:
    """Clipboard used when copying is turned off in settings."""

    async def write(self, text: str) -> None:
        raise ClipboardError("Clipboard is disabled (CHAPTERSMITH_CLIPBOARD_ENABLED=false)")
