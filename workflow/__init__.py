"""Workflow package — POV resolution, chapter lifecycle, store, and workspace."""

from workflow.pov import resolve_pov
from workflow.lifecycle import ChapterLifecycle, TRANSITIONS, state_from_status
from workflow.inflight import InFlightRegistry, RequestToken
from workflow.store import ChapterStore
from workflow.orchestrator import (
    GenerationOrchestrator,
    GenerationOutcome,
    OutcomeKind,
    PromptDelivery,
)
from workflow.callbacks import WorkspaceCallback, LoggingCallback
from workflow.workspace import WorkspaceController, EditBuffer, ChapterView, validate_draft

__all__ = [
    "resolve_pov",
    "ChapterLifecycle",
    "TRANSITIONS",
    "state_from_status",
    "InFlightRegistry",
    "RequestToken",
    "ChapterStore",
    "GenerationOrchestrator",
    "GenerationOutcome",
    "OutcomeKind",
    "PromptDelivery",
    "WorkspaceCallback",
    "LoggingCallback",
    "WorkspaceController",
    "EditBuffer",
    "ChapterView",
    "validate_draft",
]
