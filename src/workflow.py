"""
Workflow: the stage transition engine for a design session.

Each input runs through a fixed pipeline:

    validator -> classifier -> transition planning -> narrative -> store

Design principles:
- Planning functions are pure and return StatePatch dicts; they never mutate
- The store applies each patch in a single step and notifies observers
- Expected user problems come back as data on EngineResponse; only
  programming faults (unknown stage, broken invariants) raise
- The narrative generator only shapes text; it never decides transitions
"""

from dataclasses import dataclass
from typing import Callable

from classifier import DEFAULT_CLASSIFIER_CONFIG, classify, needs_confirmation
from config import AppConfig, ClassifierConfig
from errors import NOTHING_PENDING, SESSION_TERMINAL, VALIDATION_FAILURE
from logging_utils import get_logger
from narrative import NarrativeGenerator
from registry import DEFAULT_REGISTRY, Stage, StageRegistry, build_registry
from state import (
    ConfirmationLevel,
    ConversationState,
    InputSource,
    PendingConfirmation,
    ProjectContext,
    StageId,
    StatePatch,
)
from store import ConversationStore, Listener
from validators import ValidationResult, validate_session_complete

logger = get_logger(__name__)


@dataclass(frozen=True)
class EngineResponse:
    """What the engine hands back to the chat UI for one action."""
    success: bool
    message: str
    new_state: ConversationState
    suggestions: tuple[str, ...] = ()
    stage_complete: bool = False
    confirmation: ConfirmationLevel | None = None
    error_code: str | None = None
    stage_id: StageId | None = None


# =============================================================================
# Transition Planning (pure)
# =============================================================================

def plan_attempt(
    state: ConversationState,
    raw_text: str,
    level: ConfirmationLevel,
    attempts: int,
    source: InputSource,
) -> StatePatch:
    """
    Record an attempt that does not advance the stage.

    The input is held as pending whenever the level asks for confirmation.
    """
    pending = None
    if needs_confirmation(level):
        pending = PendingConfirmation(
            stage_id=state.current_stage_id,
            pending_value=raw_text,
            mode=level,
            attempts=attempts,
            source=source,
        )
    return {"stage_attempts": attempts, "pending_confirmation": pending}


def plan_transition(
    state: ConversationState,
    stage: Stage,
    validation: ValidationResult,
    value: str,
) -> StatePatch:
    """
    Apply an accepted input: capture, mark complete, advance.

    Args:
        state: Snapshot before the input.
        stage: The active stage.
        validation: A valid result for value.
        value: The accepted raw input.

    Returns:
        StatePatch that completes the stage and moves to the next one, or
        marks the session terminal when there is no next stage.
    """
    patch: StatePatch = {"pending_confirmation": None, "stage_attempts": 0}
    trimmed = value.strip()

    if validation.capture_data and validation.data_key:
        project_data = dict(state.project_data)
        project_data[validation.data_key] = trimmed
        patch["project_data"] = project_data

        context = state.context.with_value(validation.data_key, trimmed)
        if context != state.context:
            patch["context"] = context

    if stage.id not in state.completed_stage_ids:
        patch["completed_stage_ids"] = state.completed_stage_ids + (stage.id,)

    if stage.next_stage_id is not None:
        patch["current_stage_id"] = stage.next_stage_id
    else:
        patch["completed"] = True

    return patch


def plan_navigation(stage: Stage) -> StatePatch:
    """Operator jump to a stage. Completed stages are left as they are."""
    return {
        "current_stage_id": stage.id,
        "pending_confirmation": None,
        "stage_attempts": 0,
        "completed": False,
    }


# =============================================================================
# Engine
# =============================================================================

class ConversationEngine:
    """
    Drives design sessions held in ConversationStore instances.

    The engine itself is stateless apart from its collaborators, so one
    engine can serve many stores.

    Usage:
        engine = ConversationEngine()
        store = create_store(ProjectContext(subject="Science"))
        response = engine.process_input(store, "Water as a shared resource")
        if response.confirmation is ConfirmationLevel.REVIEW:
            response = engine.confirm(store)
    """

    def __init__(
        self,
        registry: StageRegistry = DEFAULT_REGISTRY,
        narrative: NarrativeGenerator | None = None,
        classifier_config: ClassifierConfig = DEFAULT_CLASSIFIER_CONFIG,
    ):
        self.registry = registry
        self.narrative = narrative if narrative is not None else NarrativeGenerator()
        self.classifier_config = classifier_config

    @classmethod
    def from_config(cls, config: AppConfig, narrative: NarrativeGenerator | None = None) -> "ConversationEngine":
        registry = build_registry(config.validation, config.optional_stages)
        return cls(registry=registry, narrative=narrative, classifier_config=config.classifier)

    def create_store(self, context: ProjectContext | None = None) -> ConversationStore:
        return create_store(context, registry=self.registry)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def process_input(
        self,
        store: ConversationStore,
        raw_text: str,
        source: InputSource | str = InputSource.TYPED,
    ) -> EngineResponse:
        """
        Judge one piece of teacher input against the active stage.

        Args:
            store: Session handle.
            raw_text: Input as typed or chosen.
            source: typed, suggestion, or refinement.

        Returns:
            EngineResponse describing the outcome and the new state.
        """
        source = InputSource(source)
        state = store.get_state()

        if state.completed:
            return self._terminal_response(state, raw_text)

        stage = self.registry.get_stage(state.current_stage_id)
        attempts = state.stage_attempts + 1
        validation = stage.validate(raw_text, state.context)
        level = classify(validation, attempts, source, raw_text, self.classifier_config)

        if not validation.is_valid:
            new_state = store.apply_patch(plan_attempt(state, raw_text, level, attempts, source))
            logger.debug(
                "Rejected input for %s (attempt %d): %s",
                stage.id.value, attempts, validation.error_message,
            )
            return EngineResponse(
                success=False,
                message=validation.error_message or "That input doesn't fit this stage yet.",
                new_state=new_state,
                suggestions=validation.suggestions,
                confirmation=level,
                error_code=VALIDATION_FAILURE,
                stage_id=stage.id,
            )

        if needs_confirmation(level):
            message, options = self.narrative.check_in(stage.id, raw_text, level)
            new_state = store.apply_patch(plan_attempt(state, raw_text, level, attempts, source))
            logger.debug("Holding input for %s as %s (attempt %d)", stage.id.value, level.value, attempts)
            return EngineResponse(
                success=True,
                message=message,
                new_state=new_state,
                suggestions=options,
                confirmation=level,
                stage_id=stage.id,
            )

        return self._advance(store, state, stage, validation, raw_text)

    def confirm(self, store: ConversationStore) -> EngineResponse:
        """
        Accept the pending input as if it had classified 'immediate'.

        The pending value is re-validated first; validators are pure, so this
        gives the same verdict unless the context changed in between.
        """
        state = store.get_state()
        if state.completed:
            return self._terminal_response(state, "")

        stage = self.registry.get_stage(state.current_stage_id)
        pending = state.pending_confirmation
        if pending is None:
            return EngineResponse(
                success=False,
                message="There is nothing waiting for confirmation. "
                        + self.narrative.fallback(stage.id, state.context),
                new_state=state,
                suggestions=self.narrative.refinement_suggestions(stage.id, state.context),
                error_code=NOTHING_PENDING,
                stage_id=stage.id,
            )

        validation = stage.validate(pending.pending_value, state.context)
        if not validation.is_valid:
            return EngineResponse(
                success=False,
                message=self.narrative.fallback(stage.id, state.context, validation.error_message),
                new_state=state,
                suggestions=validation.suggestions,
                confirmation=ConfirmationLevel.REFINE,
                error_code=VALIDATION_FAILURE,
                stage_id=stage.id,
            )

        return self._advance(store, state, stage, validation, pending.pending_value)

    def refine(self, store: ConversationStore) -> EngineResponse:
        """Drop the pending draft and offer replacement phrasings. The stage stays put."""
        state = store.get_state()
        if state.completed:
            return self._terminal_response(state, "")

        stage = self.registry.get_stage(state.current_stage_id)
        pending = state.pending_confirmation
        message = self.narrative.refine_request(stage.id, pending.pending_value if pending else None)
        suggestions = self.narrative.refinement_suggestions(stage.id, state.context)

        new_state = store.apply_patch({"pending_confirmation": None})
        return EngineResponse(
            success=True,
            message=message,
            new_state=new_state,
            suggestions=suggestions,
            confirmation=ConfirmationLevel.REFINE,
            stage_id=stage.id,
        )

    def navigate_to_stage(self, store: ConversationStore, stage_id: StageId | str) -> ConversationState:
        """
        Operator/debug jump to any stage, bypassing validation.

        Unsafe by nature: the completed set is kept as is, so it may stop
        being a prefix of the visited path.

        Raises:
            UnknownStageError: If stage_id is not registered.
        """
        stage = self.registry.get_stage(stage_id)
        logger.warning(
            "Debug navigation from %s to %s (validation bypassed)",
            store.get_state().current_stage_id.value, stage.id.value,
        )
        return store.apply_patch(plan_navigation(stage))

    def get_stage_prompt(self, stage_id: StageId | str, context: ProjectContext | None = None) -> str:
        stage = self.registry.get_stage(stage_id)
        return self.narrative.stage_prompt(stage.id, context or ProjectContext())

    def subscribe(self, store: ConversationStore, listener: Listener) -> Callable[[], None]:
        return store.subscribe(listener)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _advance(
        self,
        store: ConversationStore,
        state: ConversationState,
        stage: Stage,
        validation: ValidationResult,
        value: str,
    ) -> EngineResponse:
        patch = plan_transition(state, stage, validation, value)

        # Text is built from the post-transition context before the store commits
        preview = state.apply_patch(patch)
        acknowledgment = self.narrative.acknowledgment(stage.id, value, preview.context)
        next_stage = self.registry.next_stage(stage.id)
        if next_stage is not None:
            follow_up = self.narrative.stage_prompt(next_stage.id, preview.context)
            suggestions = self.narrative.refinement_suggestions(next_stage.id, preview.context)
        else:
            follow_up = self.narrative.completion_message()
            # Nothing left to pick once the session is finished
            suggestions = ()

        new_state = store.apply_patch(patch)
        if next_stage is not None:
            logger.info("Stage %s complete; advancing to %s", stage.id.value, next_stage.id.value)
        else:
            logger.info("Stage %s complete; session finished", stage.id.value)

        return EngineResponse(
            success=True,
            message="\n\n".join(
                part for part in (acknowledgment, self.narrative.transition_message(stage.id), follow_up)
                if part
            ),
            new_state=new_state,
            suggestions=suggestions,
            stage_complete=True,
            confirmation=ConfirmationLevel.IMMEDIATE,
            stage_id=stage.id,
        )

    def _terminal_response(self, state: ConversationState, raw_text: str) -> EngineResponse:
        validation = validate_session_complete(raw_text, state.context)
        return EngineResponse(
            success=False,
            message=validation.error_message or self.narrative.completion_message(),
            new_state=state,
            suggestions=validation.suggestions,
            error_code=SESSION_TERMINAL,
            stage_id=state.current_stage_id,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def create_store(
    context: ProjectContext | None = None,
    registry: StageRegistry = DEFAULT_REGISTRY,
) -> ConversationStore:
    """Fresh session store positioned at the registry's initial stage."""
    initial = ConversationState(
        current_stage_id=registry.get_initial_stage().id,
        context=context or ProjectContext(),
    )
    return ConversationStore(initial, registry=registry)


def process_input(
    store: ConversationStore,
    raw_text: str,
    source: InputSource | str = InputSource.TYPED,
    engine: ConversationEngine | None = None,
) -> EngineResponse:
    """
    Convenience function to run one input through a default engine.

    Args:
        store: Session handle.
        raw_text: Teacher input.
        source: typed, suggestion, or refinement.
        engine: Engine to use. A default one is built when None.

    Returns:
        EngineResponse for the input.
    """
    engine = engine if engine is not None else ConversationEngine(registry=store.registry)
    return engine.process_input(store, raw_text, source)


def describe_stage_chain(registry: StageRegistry = DEFAULT_REGISTRY) -> str:
    """Text rendering of the stage chain, for debugging."""
    lines = ["Stage chain:", "-" * 40]
    for stage in registry:
        marker = "" if stage.required else " (optional)"
        target = stage.next_stage_id.value if stage.next_stage_id else "COMPLETE"
        lines.append(f"{stage.id.value}{marker} -> {target}")
    lines.append("-" * 40)
    return "\n".join(lines)


if __name__ == "__main__":
    print(describe_stage_chain())
