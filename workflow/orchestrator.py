"""Chapter generation: dispatch, interpret the two response modes, update state."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from config.exceptions import ChapterBusyError, ClipboardError, NoActiveProjectError
from models.chapter import Chapter
from models.enums import LifecycleEvent, Pov
from tools.backend_client import BackendClient, PromptOnly
from tools.clipboard import Clipboard
from workflow.callbacks import LoggingCallback, WorkspaceCallback
from workflow.pov import resolve_pov
from workflow.store import ChapterStore

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    CONTENT = "content"
    PROMPT_ONLY = "prompt_only"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class PromptDelivery:
    """A prompt handed to the user, and whether it reached the clipboard."""
    prompt: str
    copied: bool
    clipboard_error: Optional[str] = None


@dataclass(frozen=True)
class GenerationOutcome:
    chapter_number: int
    kind: OutcomeKind
    pov: Pov
    chapter: Optional[Chapter] = None
    delivery: Optional[PromptDelivery] = None

    @property
    def prompt(self) -> Optional[str]:
        return self.delivery.prompt if self.delivery else None


class GenerationOrchestrator:
    """Sends generation requests and reconciles their outcome into the store.

    This is the only place that talks to the generation endpoint.
    """

    def __init__(
        self,
        backend: BackendClient,
        store: ChapterStore,
        clipboard: Clipboard,
        callback: Optional[WorkspaceCallback] = None,
    ):
        self.backend = backend
        self.store = store
        self.clipboard = clipboard
        self.callback = callback or LoggingCallback()

    async def generate(self, project_id: str, chapter_number: int) -> GenerationOutcome:
        """Generate one chapter.

        Returns:
            GenerationOutcome describing direct content, a prompt-only
            fallback, or a response discarded because the project was closed.

        Raises:
            ChapterBusyError: If this chapter is already generating.
            InvalidTransitionError: If the chapter is being edited.
            BackendError: If the request fails; local state is unchanged.
        """
        project = self.store.project
        if project is None or project.id != project_id:
            raise NoActiveProjectError(f"Project {project_id} is not the open project")

        chapter = self.store.get(chapter_number)
        lifecycle = self.store.lifecycle(chapter_number)
        if lifecycle.is_generating:
            raise ChapterBusyError(chapter_number)
        lifecycle.fire(LifecycleEvent.GENERATE)

        pov = resolve_pov(project.pov_mode, chapter_number, project.default_pov, chapter.pov)
        logger.info("Generating chapter %d of project %s (POV %s)", chapter_number, project_id, pov.value)

        registry = self.store.registry
        epoch = registry.epoch
        token = None
        try:
            async with registry.lock(chapter_number):
                # Another mutation may have held the lock while the project was closed
                if not self.store.is_session(project, epoch):
                    logger.info("Chapter %d: dropping generate queued for closed project %s",
                                chapter_number, project_id)
                    return GenerationOutcome(chapter_number, OutcomeKind.SUPERSEDED, pov)
                token = registry.begin(chapter_number, "generate")
                result = await self.backend.generate_chapter(project_id, chapter_number)
        except (Exception, asyncio.CancelledError):
            # Restore the chapter unless a close already discarded it
            if lifecycle.is_generating and (token is None or registry.is_current(token)):
                lifecycle.fire(LifecycleEvent.GENERATION_FAILED)
            if token is not None:
                registry.finish(token)
            raise

        if isinstance(result, PromptOnly):
            current = registry.is_current(token)
            registry.finish(token)
            if not current:
                return GenerationOutcome(chapter_number, OutcomeKind.SUPERSEDED, pov)
            lifecycle.fire(LifecycleEvent.PROMPT_RECEIVED)
            delivery = await self._deliver_prompt(chapter_number, result.prompt)
            return GenerationOutcome(chapter_number, OutcomeKind.PROMPT_ONLY, pov, delivery=delivery)

        merged = self.store.merge(result, token)
        if merged is None:
            return GenerationOutcome(chapter_number, OutcomeKind.SUPERSEDED, pov)
        lifecycle.fire(LifecycleEvent.CONTENT_RECEIVED)

        in_range = self.store.in_range(merged)
        logger.info(
            "Chapter %d generated: %d words%s",
            chapter_number, merged.words, "" if in_range else " (outside target range)",
        )
        self.callback.on_chapter_updated(merged, in_range)
        return GenerationOutcome(chapter_number, OutcomeKind.CONTENT, pov, chapter=merged)

    async def build_prompt(self, project_id: str, chapter_number: int) -> PromptDelivery:
        """Fetch the generation prompt for manual use and copy it.

        No lifecycle change; the chapter is untouched.
        """
        self.store.get(chapter_number)
        prompt = await self.backend.build_prompt(project_id, chapter_number)
        return await self._deliver_prompt(chapter_number, prompt)

    async def _deliver_prompt(self, chapter_number: int, prompt: str) -> PromptDelivery:
        """Write a prompt to the clipboard once; failure is reported, not retried."""
        try:
            await self.clipboard.write(prompt)
        except ClipboardError as e:
            self.callback.on_error("copy prompt", e)
            delivery = PromptDelivery(prompt, copied=False, clipboard_error=str(e))
        else:
            delivery = PromptDelivery(prompt, copied=True)
        self.callback.on_prompt_ready(chapter_number, prompt, delivery.copied)
        return delivery
