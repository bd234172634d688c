"""Configuration package — settings, logging, and exceptions."""

from config.exceptions import (
    ChapterSmithError,
    BackendError,
    BackendUnavailableError,
    BackendResponseError,
    WorkflowError,
    InvalidTransitionError,
    ChapterBusyError,
    ChapterNotFoundError,
    NoActiveProjectError,
    ValidationError,
    ProjectValidationError,
    InvalidConfigError,
    ClipboardError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "ChapterSmithError",
    "BackendError",
    "BackendUnavailableError",
    "BackendResponseError",
    "WorkflowError",
    "InvalidTransitionError",
    "ChapterBusyError",
    "ChapterNotFoundError",
    "NoActiveProjectError",
    "ValidationError",
    "ProjectValidationError",
    "InvalidConfigError",
    "ClipboardError",
]
