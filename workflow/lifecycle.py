"""Per-chapter lifecycle state machine.

    empty ──generate──▶ generating ──content_received──▶ generated
                            │ ──prompt_received──▶ prompt_pending
                            └ ──generation_failed──▶ (state before generate)

    empty | generated | draft | prompt_pending ──edit──▶ editing
    editing ──save──▶ draft
    editing ──cancel──▶ (state before edit)
    generated | draft | prompt_pending ──generate──▶ generating

POV overrides never touch lifecycle state.
"""

import logging

from config.exceptions import InvalidTransitionError
from models.enums import ChapterStatus, LifecycleEvent, LifecycleState

logger = logging.getLogger(__name__)

S = LifecycleState
E = LifecycleEvent

# (state, event) -> next state. None means "return to the remembered state".
TRANSITIONS: dict[tuple[LifecycleState, LifecycleEvent], LifecycleState | None] = {
    (S.EMPTY, E.GENERATE): S.GENERATING,
    (S.GENERATED, E.GENERATE): S.GENERATING,
    (S.DRAFT, E.GENERATE): S.GENERATING,
    (S.PROMPT_PENDING, E.GENERATE): S.GENERATING,
    (S.GENERATING, E.CONTENT_RECEIVED): S.GENERATED,
    (S.GENERATING, E.PROMPT_RECEIVED): S.PROMPT_PENDING,
    (S.GENERATING, E.GENERATION_FAILED): None,
    (S.EMPTY, E.EDIT): S.EDITING,
    (S.GENERATED, E.EDIT): S.EDITING,
    (S.DRAFT, E.EDIT): S.EDITING,
    (S.PROMPT_PENDING, E.EDIT): S.EDITING,
    (S.EDITING, E.SAVE): S.DRAFT,
    (S.EDITING, E.CANCEL): None,
}

# Events that remember the state they leave, for failure/cancel to restore
_REMEMBERING_EVENTS = {E.GENERATE, E.EDIT}


def state_from_status(status: ChapterStatus | str) -> LifecycleState:
    """Seed a lifecycle state from the status persisted by the backend."""
    status = ChapterStatus(status)
    if status == ChapterStatus.GENERATED:
        return S.GENERATED
    if status == ChapterStatus.DRAFT:
        return S.DRAFT
    return S.EMPTY


class ChapterLifecycle:
    """Lifecycle state of one chapter."""

    def __init__(self, number: int, state: LifecycleState = S.EMPTY):
        self.number = number
        self.state = LifecycleState(state)
        self._previous = self.state

    def __repr__(self) -> str:
        return f"ChapterLifecycle(number={self.number}, state={self.state.value})"

    def can(self, event: LifecycleEvent) -> bool:
        return (self.state, LifecycleEvent(event)) in TRANSITIONS

    def fire(self, event: LifecycleEvent) -> LifecycleState:
        """Apply an event and return the new state.

        Raises:
            InvalidTransitionError: If the event is not allowed in the current state.
        """
        event = LifecycleEvent(event)
        key = (self.state, event)
        if key not in TRANSITIONS:
            raise InvalidTransitionError(self.number, self.state.value, event.value)

        target = TRANSITIONS[key]
        if target is None:
            target = self._previous
        if event in _REMEMBERING_EVENTS:
            self._previous = self.state

        logger.debug("Chapter %d: %s --%s--> %s", self.number, self.state.value, event.value, target.value)
        self.state = target
        return target

    @property
    def is_generating(self) -> bool:
        return self.state == S.GENERATING

    @property
    def is_editing(self) -> bool:
        return self.state == S.EDITING
