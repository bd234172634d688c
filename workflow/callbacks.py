"""Workspace notification callbacks for user-facing feedback."""

import logging
from typing import Protocol, runtime_checkable

from models.chapter import Chapter
from models.project import Project

logger = logging.getLogger(__name__)


@runtime_checkable
class WorkspaceCallback(Protocol):
    """Protocol for workspace notifications.

    Implement this protocol to surface workspace events to the user.
    """

    def on_chapters_loaded(self, project: Project, chapters: list[Chapter]) -> None:
        """Called after the chapter list of the open project has been replaced."""
        ...

    def on_chapter_updated(self, chapter: Chapter, in_range: bool) -> None:
        """Called after a backend-confirmed chapter record has been merged."""
        ...

    def on_prompt_ready(self, chapter_num: int, prompt: str, copied: bool) -> None:
        """Called when a prompt must be run through an external model by the user."""
        ...

    def on_error(self, action: str, error: Exception) -> None:
        """Called when an action fails; the error is also raised to the caller."""
        ...


class LoggingCallback:
    """Lightweight callback that logs workspace events to the standard logger."""

    def on_chapters_loaded(self, project: Project, chapters: list[Chapter]) -> None:
        logger.info("Project %s: %d chapters loaded", project.id, len(chapters))

    def on_chapter_updated(self, chapter: Chapter, in_range: bool) -> None:
        if in_range:
            logger.info("Chapter %d updated (%d words)", chapter.number, chapter.words)
        else:
            logger.warning("Chapter %d updated (%d words, outside target range)", chapter.number, chapter.words)

    def on_prompt_ready(self, chapter_num: int, prompt: str, copied: bool) -> None:
        if copied:
            logger.info(
                "Chapter %d: no model configured on the backend. Prompt copied to clipboard; "
                "run it through your model, then edit the chapter to save the result.",
                chapter_num,
            )
        else:
            logger.warning("Chapter %d: prompt ready (%d chars) but not copied", chapter_num, len(prompt))

    def on_error(self, action: str, error: Exception) -> None:
        logger.error("%s failed: %s", action, error)
