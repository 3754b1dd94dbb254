"""
ConversationStore: exclusive owner of one session's ConversationState.

Every mutation goes through apply_patch(), which swaps in a new immutable
snapshot and then synchronously calls each subscribed listener with it.
Listeners must not mutate state from inside their callback; doing so raises
ReentrancyViolation.

One store per session. Stores are not shared between sessions and are not
thread-safe on their own; hosts serialize calls per session (see session.py).
"""

from typing import Callable

from errors import ReentrancyViolation, StateInvariantError
from logging_utils import get_logger
from registry import DEFAULT_REGISTRY, StageRegistry
from state import ConversationState, StatePatch

logger = get_logger(__name__)

Listener = Callable[[ConversationState], None]


class ConversationStore:
    """
    Holds the live ConversationState and notifies observers.

    Usage:
        store = ConversationStore()
        unsubscribe = store.subscribe(lambda state: render(state))
        store.apply_patch({"stage_attempts": 1})
        unsubscribe()
    """

    def __init__(
        self,
        initial_state: ConversationState | None = None,
        registry: StageRegistry = DEFAULT_REGISTRY,
    ):
        """
        Args:
            initial_state: Starting snapshot. Defaults to a fresh session at
                the registry's initial stage.
            registry: Stage table used to check the current stage.
        """
        self.registry = registry
        if initial_state is None:
            initial_state = ConversationState(current_stage_id=registry.get_initial_stage().id)
        self._check_invariants(initial_state)
        self._state = initial_state
        self._listeners: list[Listener] = []
        self._notifying = False

    def get_state(self) -> ConversationState:
        """Current snapshot. Snapshots are frozen and their project_data is read-only."""
        return self._state

    def apply_patch(self, patch: StatePatch) -> ConversationState:
        """
        Apply a patch, then notify every listener with the new snapshot.

        Raises:
            ReentrancyViolation: If called from inside a listener.
            ValueError: If the patch names unknown fields.
            UnknownStageError: If current_stage_id is not registered.
            StateInvariantError: If the result breaks a state invariant.
        """
        if self._notifying:
            raise ReentrancyViolation(
                "apply_patch() called from a store listener; listeners must not mutate state"
            )

        new_state = self._state.apply_patch(patch)
        self._check_invariants(new_state)
        self._state = new_state
        logger.debug("Applied patch with fields: %s", ", ".join(sorted(patch)))

        self._notify(new_state)
        return new_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A function that removes the listener. Calling it twice is harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self, state: ConversationState) -> None:
        self._notifying = True
        try:
            # Copy so listeners may unsubscribe while being notified
            for listener in list(self._listeners):
                listener(state)
        finally:
            self._notifying = False

    def _check_invariants(self, state: ConversationState) -> None:
        # Raises UnknownStageError for unregistered stages
        self.registry.get_stage(state.current_stage_id)

        completed = state.completed_stage_ids
        if len(set(completed)) != len(completed):
            raise StateInvariantError(
                f"completed_stage_ids contains duplicates: {[s.value for s in completed]}"
            )
        for stage_id in completed:
            self.registry.get_stage(stage_id)

        pending = state.pending_confirmation
        if pending is not None and pending.stage_id != state.current_stage_id:
            raise StateInvariantError(
                f"pending_confirmation refers to {pending.stage_id.value}, "
                f"but the active stage is {state.current_stage_id.value}"
            )

        if state.stage_attempts < 0:
            raise StateInvariantError("stage_attempts cannot be negative")
