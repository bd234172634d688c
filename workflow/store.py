"""Local view of one open project's chapters, reconciled against the backend."""

import asyncio
import logging
from typing import Optional

from config.exceptions import (
    BackendResponseError,
    ChapterNotFoundError,
    NoActiveProjectError,
)
from config.settings import Settings
from models.chapter import Chapter
from models.enums import ChapterStatus
from models.project import Project
from tools.backend_client import BackendClient
from tools.text_utils import is_word_count_in_range
from workflow.inflight import InFlightRegistry, RequestToken
from workflow.lifecycle import ChapterLifecycle, state_from_status

logger = logging.getLogger(__name__)


class ChapterStore:
    """Chapters of the open project, keyed by chapter number.

    Nothing is written locally until the backend has confirmed it. Every
    replacement is keyed by chapter number, never by list position.
    """

    def __init__(self, backend: BackendClient, settings: Optional[Settings] = None):
        self.backend = backend
        self.settings = settings or backend.settings
        self.registry = InFlightRegistry()
        self.project: Optional[Project] = None
        self._chapters: dict[int, Chapter] = {}
        self._lifecycles: dict[int, ChapterLifecycle] = {}

    # ---- Binding -----------------------------------------------------------

    def bind(self, project: Project) -> None:
        """Make ``project`` the open project, dropping any previous one."""
        self.reset()
        self.project = project

    def reset(self) -> None:
        """Forget the open project and ignore all in-flight responses."""
        self.registry.cancel_all()
        self.project = None
        self._chapters = {}
        self._lifecycles = {}

    def is_session(self, project: Optional[Project], epoch: int) -> bool:
        """True while ``project`` is still open and nothing was cancelled since ``epoch``."""
        return project is not None and self.project is project and self.registry.epoch == epoch

    def _require_project(self, project_id: str) -> Project:
        if self.project is None:
            raise NoActiveProjectError()
        if self.project.id != project_id:
            raise NoActiveProjectError(f"Project {project_id} is not the open project")
        return self.project

    # ---- Reads -------------------------------------------------------------

    @property
    def chapters(self) -> list[Chapter]:
        return [self._chapters[n] for n in sorted(self._chapters)]

    @property
    def numbers(self) -> list[int]:
        return sorted(self._chapters)

    def __len__(self) -> int:
        return len(self._chapters)

    def __contains__(self, number: int) -> bool:
        return number in self._chapters

    def get(self, number: int) -> Chapter:
        try:
            return self._chapters[number]
        except KeyError:
            raise ChapterNotFoundError(number) from None

    def lifecycle(self, number: int) -> ChapterLifecycle:
        try:
            return self._lifecycles[number]
        except KeyError:
            raise ChapterNotFoundError(number) from None

    # ---- Loading -----------------------------------------------------------

    async def initialize(self, project_id: str) -> list[Chapter]:
        """Request chapter scaffolding and replace the full chapter list.

        On failure the previous chapters are left untouched.
        """
        project = self._require_project(project_id)
        epoch = self.registry.epoch
        chapters = await self.backend.init_chapters(project_id)
        return self._replace_all(project, chapters, epoch, "init")

    async def refresh(self, project_id: str) -> list[Chapter]:
        """Reload the current chapters without re-initializing them."""
        project = self._require_project(project_id)
        epoch = self.registry.epoch
        chapters = await self.backend.list_chapters(project_id)
        return self._replace_all(project, chapters, epoch, "refresh")

    def _replace_all(self, project: Project, chapters: list[Chapter], epoch: int, action: str) -> list[Chapter]:
        if not self.is_session(project, epoch):
            logger.info("Discarding %s response for closed project %s", action, project.id)
            return self.chapters

        numbers = sorted(c.number for c in chapters)
        expected = list(range(1, project.chapter_count + 1))
        if numbers != expected:
            raise BackendResponseError(
                f"Chapter set {numbers} does not match 1..{project.chapter_count}",
                path=f"/api/projects/{project.id}/chapters",
            )

        # Chapters mid-generation or open in the editor keep their lifecycle
        lifecycles = {}
        for c in chapters:
            current = self._lifecycles.get(c.number)
            if current is not None and (current.is_generating or current.is_editing):
                lifecycles[c.number] = current
            else:
                lifecycles[c.number] = ChapterLifecycle(c.number, state_from_status(c.status))
        self._chapters = {c.number: c for c in chapters}
        self._lifecycles = lifecycles
        logger.info("Loaded %d chapters for project %s (%s)", len(chapters), project.id, action)
        return self.chapters

    # ---- Mutations ---------------------------------------------------------

    async def apply_update(self, number: int, patch: dict) -> Optional[Chapter]:
        """Send a partial update and replace only the matching chapter.

        Returns the confirmed chapter, or None if the response arrived after
        the project was closed and was discarded.
        """
        project = self.project
        if project is None:
            raise NoActiveProjectError()
        self.get(number)
        epoch = self.registry.epoch

        async with self.registry.lock(number):
            # The project may have been closed while this waited for the lock
            if not self.is_session(project, epoch):
                logger.info("Chapter %d: dropping update queued for closed project %s", number, project.id)
                return None
            token = self.registry.begin(number, "update")
            try:
                chapter = await self.backend.update_chapter(project.id, number, patch)
            except (Exception, asyncio.CancelledError):
                self.registry.finish(token)
                raise
            return self.merge(chapter, token)

    def merge(self, record: Chapter, token: Optional[RequestToken] = None) -> Optional[Chapter]:
        """Replace the local record with the same chapter number.

        With a token, the record is only applied if the token is still
        current; a stale record is dropped and None returned.
        """
        if token is not None:
            current = self.registry.is_current(token)
            self.registry.finish(token)
            if not current:
                logger.info(
                    "Chapter %d: discarding stale %s response", record.number, token.operation
                )
                return None
        if record.number not in self._chapters:
            raise ChapterNotFoundError(record.number)
        self._chapters[record.number] = record
        logger.debug("Chapter %d merged (status=%s, words=%d)", record.number, record.status.value, record.words)
        return record

    # ---- Word-count conformance -------------------------------------------

    def in_range(self, chapter: Chapter) -> bool:
        return is_word_count_in_range(
            chapter.words, self.settings.word_count_min, self.settings.word_count_max
        )

    def out_of_range(self) -> list[Chapter]:
        """Chapters whose word count falls outside the target band."""
        return [c for c in self.chapters if not self.in_range(c)]

    def summary(self) -> dict:
        """Aggregate counts for display."""
        chapters = self.chapters
        by_status = {status.value: 0 for status in ChapterStatus}
        for c in chapters:
            by_status[c.status.value] += 1
        return {
            "chapters": len(chapters),
            "total_words": sum(c.words for c in chapters),
            "in_range": sum(1 for c in chapters if self.in_range(c)),
            "by_status": by_status,
        }
