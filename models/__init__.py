"""Models package — project and chapter records, and enums."""

from models.project import (
    Project,
    ProjectDraft,
    DEFAULT_GENERATION_RULES,
    MIN_CHAPTERS,
    MAX_CHAPTERS,
    default_pov_for_mode,
)
from models.chapter import Chapter, PATCHABLE_FIELDS
from models.enums import (
    Pov,
    PovMode,
    ChapterStatus,
    LifecycleState,
    LifecycleEvent,
)

__all__ = [
    "Project",
    "ProjectDraft",
    "DEFAULT_GENERATION_RULES",
    "MIN_CHAPTERS",
    "MAX_CHAPTERS",
    "default_pov_for_mode",
    "Chapter",
    "PATCHABLE_FIELDS",
    "Pov",
    "PovMode",
    "ChapterStatus",
    "LifecycleState",
    "LifecycleEvent",
]
