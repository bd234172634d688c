"""Shared pytest fixtures for the chaptersmith test suite."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from config.exceptions import ClipboardError


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance isolated from any .env file."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        backend_url="http://backend.test",
        log_dir=tmp_path / "logs",
        word_count_min=1400,
        word_count_max=1800,
    )


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

def words(n: int) -> str:
    """Return text with exactly ``n`` words."""
    return " ".join(["word"] * n)


def make_chapters(count: int) -> list:
    from models.chapter import Chapter
    return [Chapter(number=n, id=f"ch-{n}") for n in range(1, count + 1)]


@pytest.fixture
def dual_project():
    """A three-chapter dual-POV project."""
    from models.project import Project
    from models.enums import PovMode, Pov
    return Project(
        id="p1",
        name="Harbor Lights",
        outline="Scene one. Scene two. Scene three.",
        chapter_count=3,
        pov_mode=PovMode.DUAL,
        default_pov=Pov.FEMALE,
    )


@pytest.fixture
def male_project():
    from models.project import Project
    from models.enums import PovMode, Pov
    return Project(id="p2", name="Night Shift", outline="...", chapter_count=4,
                   pov_mode=PovMode.MALE, default_pov=Pov.MALE)


# ---------------------------------------------------------------------------
# Backend and clipboard mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_backend(settings):
    """Return an AsyncMock standing in for BackendClient."""
    backend = MagicMock()
    backend.settings = settings
    backend.create_project = AsyncMock()
    backend.list_projects = AsyncMock(return_value=[])
    backend.delete_project = AsyncMock(return_value=None)
    backend.init_chapters = AsyncMock(side_effect=lambda project_id: make_chapters(3))
    backend.list_chapters = AsyncMock(side_effect=lambda project_id: make_chapters(3))
    backend.generate_chapter = AsyncMock()
    backend.build_prompt = AsyncMock(return_value="Write chapter 1 ...")
    backend.update_chapter = AsyncMock()
    return backend


class MemoryClipboard:
    """Clipboard that keeps what was written."""

    def __init__(self):
        self.writes: list[str] = []

    @property
    def text(self):
        return self.writes[-1] if self.writes else None

    async def write(self, text: str) -> None:
        self.writes.append(text)


class BrokenClipboard:
    """Clipboard whose writes always fail."""

    def __init__(self):
        self.attempts = 0

    async def write(self, text: str) -> None:
        self.attempts += 1
        raise ClipboardError("no display")


@pytest.fixture
def clipboard():
    return MemoryClipboard()


@pytest.fixture
def broken_clipboard():
    return BrokenClipboard()


@pytest.fixture
def callback():
    """A MagicMock recording workspace notifications."""
    return MagicMock()


# ---------------------------------------------------------------------------
# Workflow fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store(mock_backend, settings, dual_project):
    """A ChapterStore bound to the dual-POV project (not yet initialized)."""
    from workflow.store import ChapterStore
    s = ChapterStore(mock_backend, settings)
    s.bind(dual_project)
    return s


@pytest.fixture
def workspace(mock_backend, clipboard, settings, callback):
    from workflow.workspace import WorkspaceController
    return WorkspaceController(mock_backend, clipboard=clipboard, settings=settings, callback=callback)
