"""Custom exception hierarchy for the chapter workspace."""

from typing import Optional


class ChapterSmithError(Exception):
    """Base exception for all chaptersmith errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- Backend Errors ----

class BackendError(ChapterSmithError):
    """Base exception for text-generation backend errors."""


class BackendUnavailableError(BackendError):
    """Backend could not be reached or the request timed out."""


class BackendResponseError(BackendError):
    """Backend answered with a non-success status or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None, path: str = ""):
        details = {}
        if status_code is not None:
            details["status"] = status_code
        if path:
            details["path"] = path
        super().__init__(message, details)
        self.status_code = status_code
        self.path = path


# ---- Workflow Errors ----

class WorkflowError(ChapterSmithError):
    """Base exception for chapter lifecycle errors."""


class InvalidTransitionError(WorkflowError):
    """Lifecycle event not allowed in the chapter's current state."""

    def __init__(self, chapter: int, state: str, event: str):
        super().__init__(
            f"Chapter {chapter} cannot '{event}' while '{state}'",
            {"chapter": chapter, "state": state, "event": event},
        )
        self.chapter = chapter
        self.state = state
        self.event = event


class ChapterBusyError(WorkflowError):
    """A generation request for this chapter is already in flight."""

    def __init__(self, chapter: int):
        super().__init__(f"Chapter {chapter} is already generating", {"chapter": chapter})
        self.chapter = chapter


class ChapterNotFoundError(WorkflowError):
    """Chapter number is not part of the open project."""

    def __init__(self, chapter: int):
        super().__init__(f"Chapter {chapter} not found", {"chapter": chapter})
        self.chapter = chapter


class NoActiveProjectError(WorkflowError):
    """An action needs an open project but none is open."""

    def __init__(self, message: str = "No project is open"):
        super().__init__(message)


# ---- Validation Errors ----

class ValidationError(ChapterSmithError):
    """Input validation failed."""


class ProjectValidationError(ValidationError):
    """Project setup input is invalid; raised before any network call."""

    def __init__(self, field: str, message: str):
        super().__init__(message, {"field": field})
        self.field = field


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""


# ---- Clipboard Errors ----

class ClipboardError(ChapterSmithError):
    """Writing to the system clipboard failed."""
