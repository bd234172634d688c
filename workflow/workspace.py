"""Workspace controller: services user actions on projects and chapters."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from config.exceptions import (
    ChapterSmithError,
    InvalidTransitionError,
    NoActiveProjectError,
    ProjectValidationError,
)
from config.settings import Settings
from models.chapter import Chapter
from models.enums import ChapterStatus, LifecycleEvent, LifecycleState, Pov, PovMode
from models.project import MAX_CHAPTERS, MIN_CHAPTERS, Project, ProjectDraft
from tools.backend_client import BackendClient
from tools.clipboard import Clipboard, DisabledClipboard, SystemClipboard
from tools.text_utils import format_chapter_for_copy
from workflow.callbacks import LoggingCallback, WorkspaceCallback
from workflow.orchestrator import GenerationOrchestrator, GenerationOutcome, PromptDelivery
from workflow.pov import resolve_pov
from workflow.store import ChapterStore

logger = logging.getLogger(__name__)


@dataclass
class EditBuffer:
    """Unsaved title/content for a chapter open in the editor."""
    title: str
    content: str


@dataclass(frozen=True)
class ChapterView:
    """Display row for one chapter."""
    number: int
    title: str
    status: ChapterStatus
    state: LifecycleState
    pov: Pov
    pov_overridden: bool
    words: int
    in_range: bool
    in_flight: Optional[str] = None


def validate_draft(draft: ProjectDraft) -> None:
    """Check setup input before anything is sent to the backend.

    Raises:
        ProjectValidationError: On the first invalid field.
    """
    if not draft.name or not draft.name.strip():
        raise ProjectValidationError("name", "Please give the project a name.")
    if not draft.outline or not draft.outline.strip():
        raise ProjectValidationError("outline", "Please paste your outline to continue.")
    if not MIN_CHAPTERS <= draft.chapter_count <= MAX_CHAPTERS:
        raise ProjectValidationError(
            "chapter_count",
            f"Chapter count must be between {MIN_CHAPTERS} and {MAX_CHAPTERS}.",
        )
    try:
        PovMode(draft.pov_mode)
        if draft.default_pov is not None:
            Pov(draft.default_pov)
    except ValueError as e:
        raise ProjectValidationError("pov_mode", f"Invalid POV setting: {e}") from e


class WorkspaceController:
    """One user's workspace: at most one open project at a time."""

    def __init__(
        self,
        backend: BackendClient,
        clipboard: Optional[Clipboard] = None,
        settings: Optional[Settings] = None,
        callback: Optional[WorkspaceCallback] = None,
    ):
        self.settings = settings or backend.settings
        self.backend = backend
        if clipboard is None:
            clipboard = SystemClipboard() if self.settings.clipboard_enabled else DisabledClipboard()
        self.clipboard = clipboard
        self.callback = callback or LoggingCallback()
        self.store = ChapterStore(backend, self.settings)
        self.orchestrator = GenerationOrchestrator(backend, self.store, clipboard, self.callback)
        self._buffers: dict[int, EditBuffer] = {}
        self._saving: set[int] = set()

    @contextmanager
    def _reporting(self, action: str) -> Iterator[None]:
        """Surface failures to the callback, then re-raise them."""
        try:
            yield
        except ChapterSmithError as e:
            self.callback.on_error(action, e)
            raise

    @property
    def project(self) -> Optional[Project]:
        return self.store.project

    def _require_project(self) -> Project:
        if self.store.project is None:
            raise NoActiveProjectError()
        return self.store.project

    # ---- Projects ----------------------------------------------------------

    async def create_project(
        self,
        name: str,
        outline: str,
        chapter_count: int = MIN_CHAPTERS,
        pov_mode: PovMode | str = PovMode.FEMALE,
        default_pov: Optional[Pov | str] = None,
        rules: Optional[list[str]] = None,
        tags: Optional[list[str]] = None,
    ) -> Project:
        draft = ProjectDraft(
            name=name,
            outline=outline,
            chapter_count=chapter_count,
            pov_mode=pov_mode,
            default_pov=default_pov,
            tags=list(tags or []),
        )
        if rules is not None:
            draft.rules = list(rules)
        with self._reporting("create project"):
            validate_draft(draft)
            return await self.backend.create_project(draft.to_payload())

    async def list_projects(self) -> list[Project]:
        with self._reporting("list projects"):
            return await self.backend.list_projects()

    async def delete_project(self, project_id: str) -> None:
        with self._reporting("delete project"):
            await self.backend.delete_project(project_id)
        if self.project is not None and self.project.id == project_id:
            self.close()

    async def open_project(self, project: Project) -> list[Chapter]:
        """Switch to ``project`` and initialize its chapters.

        Anything still in flight for the previous project is ignored.
        """
        self.close()
        self.store.bind(project)
        with self._reporting("initialize chapters"):
            chapters = await self.store.initialize(project.id)
        self.callback.on_chapters_loaded(project, chapters)
        return chapters

    async def reload(self) -> list[Chapter]:
        project = self._require_project()
        with self._reporting("reload chapters"):
            chapters = await self.store.refresh(project.id)
        self._buffers = {n: b for n, b in self._buffers.items() if self.store.lifecycle(n).is_editing}
        self.callback.on_chapters_loaded(project, chapters)
        return chapters

    def close(self) -> None:
        """Close the open project; in-flight responses will be discarded."""
        if self.store.project is not None:
            logger.info("Closing project %s", self.store.project.id)
        self.store.reset()
        self._buffers = {}

    # ---- Generation --------------------------------------------------------

    async def generate(self, number: int) -> GenerationOutcome:
        project = self._require_project()
        with self._reporting(f"generate chapter {number}"):
            return await self.orchestrator.generate(project.id, number)

    async def build_prompt(self, number: int) -> PromptDelivery:
        project = self._require_project()
        with self._reporting(f"build prompt for chapter {number}"):
            return await self.orchestrator.build_prompt(project.id, number)

    # ---- Editing -----------------------------------------------------------

    def edit(self, number: int) -> EditBuffer:
        """Open the editor on a chapter, seeded from its last saved values."""
        with self._reporting(f"edit chapter {number}"):
            chapter = self.store.get(number)
            self.store.lifecycle(number).fire(LifecycleEvent.EDIT)
        buffer = EditBuffer(title=chapter.title, content=chapter.content)
        self._buffers[number] = buffer
        return buffer

    def buffer(self, number: int) -> Optional[EditBuffer]:
        return self._buffers.get(number)

    def update_draft(
        self,
        number: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> EditBuffer:
        buffer = self._buffers.get(number)
        if buffer is None:
            raise InvalidTransitionError(number, self.store.lifecycle(number).state.value, "update_draft")
        if title is not None:
            buffer.title = title
        if content is not None:
            buffer.content = content
        return buffer

    async def save(self, number: int) -> Optional[Chapter]:
        """Persist the edit buffer as a draft.

        On failure the chapter stays in the editor with its buffer intact.
        """
        lifecycle = self.store.lifecycle(number)
        buffer = self._buffers.get(number)
        with self._reporting(f"save chapter {number}"):
            if number in self._saving:
                raise InvalidTransitionError(number, "saving", LifecycleEvent.SAVE.value)
            if buffer is None or not lifecycle.can(LifecycleEvent.SAVE):
                raise InvalidTransitionError(number, lifecycle.state.value, LifecycleEvent.SAVE.value)
            self._saving.add(number)
            try:
                chapter = await self.store.apply_update(
                    number,
                    {"title": buffer.title, "content": buffer.content, "status": ChapterStatus.DRAFT.value},
                )
            finally:
                self._saving.discard(number)
        if chapter is None:
            return None
        if lifecycle.can(LifecycleEvent.SAVE):
            lifecycle.fire(LifecycleEvent.SAVE)
        self._buffers.pop(number, None)
        self.callback.on_chapter_updated(chapter, self.store.in_range(chapter))
        return chapter

    def cancel_edit(self, number: int) -> Chapter:
        """Leave the editor, discarding unsaved changes."""
        with self._reporting(f"cancel edit of chapter {number}"):
            self.store.lifecycle(number).fire(LifecycleEvent.CANCEL)
        self._buffers.pop(number, None)
        return self.store.get(number)

    # ---- POV ---------------------------------------------------------------

    async def set_pov_override(self, number: int, pov: Pov | str) -> Optional[Chapter]:
        """Pin a chapter's POV; content and lifecycle state are unaffected."""
        pov = Pov(pov)
        with self._reporting(f"set POV of chapter {number}"):
            chapter = await self.store.apply_update(number, {"pov": pov.value})
        if chapter is not None:
            self.callback.on_chapter_updated(chapter, self.store.in_range(chapter))
        return chapter

    def resolved_pov(self, number: int) -> Pov:
        project = self._require_project()
        chapter = self.store.get(number)
        return resolve_pov(project.pov_mode, number, project.default_pov, chapter.pov)

    # ---- Copy & display ----------------------------------------------------

    async def copy_chapter(self, number: int) -> str:
        """Copy ``# title`` plus content to the clipboard.

        While editing, the unsaved buffer is what gets copied.
        """
        chapter = self.store.get(number)
        buffer = self._buffers.get(number)
        title, content = (buffer.title, buffer.content) if buffer else (chapter.title, chapter.content)
        text = format_chapter_for_copy(title, content)
        with self._reporting(f"copy chapter {number}"):
            await self.clipboard.write(text)
        return text

    def chapter_views(self) -> list[ChapterView]:
        project = self._require_project()
        views = []
        for chapter in self.store.chapters:
            views.append(ChapterView(
                number=chapter.number,
                title=chapter.title,
                status=chapter.status,
                state=self.store.lifecycle(chapter.number).state,
                pov=resolve_pov(project.pov_mode, chapter.number, project.default_pov, chapter.pov),
                pov_overridden=chapter.has_override,
                words=chapter.words,
                in_range=self.store.in_range(chapter),
                in_flight=self.store.registry.in_flight(chapter.number),
            ))
        return views
