"""Enumerations for POV selection and chapter status tracking."""

from enum import Enum


class Pov(str, Enum):
    FEMALE = "female"
    MALE = "male"


class PovMode(str, Enum):
    FEMALE = "female"
    MALE = "male"
    DUAL = "dual"


class ChapterStatus(str, Enum):
    """Status persisted by the backend."""
    EMPTY = "empty"
    DRAFT = "draft"
    GENERATED = "generated"


class LifecycleState(str, Enum):
    """Client-side lifecycle state of a chapter."""
    EMPTY = "empty"
    GENERATING = "generating"
    PROMPT_PENDING = "prompt_pending"
    GENERATED = "generated"
    EDITING = "editing"
    DRAFT = "draft"


class LifecycleEvent(str, Enum):
    GENERATE = "generate"
    CONTENT_RECEIVED = "content_received"
    PROMPT_RECEIVED = "prompt_received"
    GENERATION_FAILED = "generation_failed"
    EDIT = "edit"
    SAVE = "save"
    CANCEL = "cancel"
