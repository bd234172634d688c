"""Per-chapter request tokens and locks.

Mutations on one chapter are serialized by that chapter's lock, so a late
response can never land on top of a newer local change. Each request also
takes a token; when its response arrives the token is checked and the
response is dropped if a newer request on the same chapter has taken over
or the registry was reset because the project was closed. Chapters never
block one another.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestToken:
    chapter: int
    operation: str
    serial: int
    epoch: int


class InFlightRegistry:
    """Tracks the newest in-flight request per chapter number."""

    def __init__(self):
        self._serials = itertools.count(1)
        self._epoch = 0
        self._current: dict[int, RequestToken] = {}
        self._locks: dict[int, asyncio.Lock] = {}

    @property
    def epoch(self) -> int:
        return self._epoch

    def lock(self, chapter: int) -> asyncio.Lock:
        """Lock serializing mutations on ``chapter``."""
        if chapter not in self._locks:
            self._locks[chapter] = asyncio.Lock()
        return self._locks[chapter]

    def begin(self, chapter: int, operation: str) -> RequestToken:
        """Start a request on ``chapter``; supersedes any earlier one."""
        token = RequestToken(chapter, operation, next(self._serials), self._epoch)
        previous = self._current.get(chapter)
        if previous is not None:
            logger.info(
                "Chapter %d: %s supersedes in-flight %s", chapter, operation, previous.operation
            )
        self._current[chapter] = token
        return token

    def is_current(self, token: RequestToken) -> bool:
        return token.epoch == self._epoch and self._current.get(token.chapter) == token

    def finish(self, token: RequestToken) -> None:
        """Release the slot if ``token`` still owns it."""
        if self._current.get(token.chapter) == token:
            del self._current[token.chapter]

    def in_flight(self, chapter: int) -> str | None:
        """Name of the operation currently in flight for ``chapter``, if any."""
        token = self._current.get(chapter)
        return token.operation if token else None

    def cancel_all(self) -> None:
        """Invalidate every outstanding token."""
        if self._current:
            logger.info("Cancelling %d in-flight request(s)", len(self._current))
        self._epoch += 1
        self._current.clear()
        self._locks.clear()

    @property
    def busy(self) -> bool:
        return bool(self._current)
