"""
ConversationState: Single source of truth for one design session.

Explicit state container passed by handle through the engine, replacing the
component-local state of the chat UI.

Design:
- ConversationState is frozen (immutable) to prevent accidental mutation
- All updates create new instances via apply_patch()
- Step functions return StatePatch dicts describing what changed
- The ConversationStore (store.py) is the only owner of the live instance
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, TypedDict


class StageId(str, Enum):
    """Design stages, in conversation order."""
    CONTEXT = "CONTEXT"
    BIG_IDEA = "BIG_IDEA"
    ESSENTIAL_QUESTION = "ESSENTIAL_QUESTION"
    CHALLENGE = "CHALLENGE"
    JOURNEY = "JOURNEY"
    DELIVERABLES = "DELIVERABLES"

    @property
    def display_name(self) -> str:
        """Lowercase label used in coaching copy, e.g. 'essential question'."""
        return self.value.lower().replace("_", " ")


class ConfirmationLevel(str, Enum):
    """How much confirmation an accepted input needs before advancing."""
    IMMEDIATE = "immediate"
    REVIEW = "review"
    REFINE = "refine"


class InputSource(str, Enum):
    """Where a piece of input came from."""
    TYPED = "typed"
    SUGGESTION = "suggestion"
    REFINEMENT = "refinement"


# Validator data keys that also populate ProjectContext
CONTEXT_FIELD_BY_KEY = {
    "subject": "subject",
    "gradeLevel": "grade_level",
    "duration": "duration",
    "bigIdea": "big_idea",
    "essentialQuestion": "essential_question",
    "challenge": "challenge",
}


@dataclass(frozen=True)
class ProjectContext:
    """Accumulated facts about the design session. Every field is optional."""
    subject: str | None = None
    grade_level: str | None = None
    duration: str | None = None
    big_idea: str | None = None
    essential_question: str | None = None
    challenge: str | None = None

    def get(self, data_key: str) -> str | None:
        """Look up a field by its validator data key (e.g. 'gradeLevel')."""
        attr = CONTEXT_FIELD_BY_KEY.get(data_key)
        return getattr(self, attr) if attr else None

    def with_value(self, data_key: str, value: str) -> "ProjectContext":
        """Return a copy with one field set. Unknown keys return self unchanged."""
        attr = CONTEXT_FIELD_BY_KEY.get(data_key)
        if attr is None:
            return self
        return replace(self, **{attr: value})

    def to_dict(self) -> dict[str, str]:
        return {
            key: getattr(self, attr)
            for key, attr in CONTEXT_FIELD_BY_KEY.items()
            if getattr(self, attr) is not None
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "ProjectContext":
        data = data or {}
        values = {}
        for key, attr in CONTEXT_FIELD_BY_KEY.items():
            # Accept both camelCase keys and attribute names
            value = data.get(key, data.get(attr))
            if value is not None:
                values[attr] = str(value)
        return cls(**values)


@dataclass(frozen=True)
class PendingConfirmation:
    """An input held back until the teacher confirms or refines it."""
    stage_id: StageId
    pending_value: str
    mode: ConfirmationLevel
    attempts: int
    source: InputSource = InputSource.TYPED

    def to_dict(self) -> dict:
        return {
            "stage_id": self.stage_id.value,
            "pending_value": self.pending_value,
            "mode": self.mode.value,
            "attempts": self.attempts,
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PendingConfirmation":
        return cls(
            stage_id=StageId(data["stage_id"]),
            pending_value=data["pending_value"],
            mode=ConfirmationLevel(data["mode"]),
            attempts=int(data.get("attempts", 0)),
            source=InputSource(data.get("source", InputSource.TYPED.value)),
        )


class StatePatch(TypedDict, total=False):
    """
    Partial state update.

    Transition planning returns what changed rather than mutating state.
    The store applies it and notifies observers.
    """
    current_stage_id: StageId
    completed_stage_ids: tuple[StageId, ...]
    project_data: Mapping[str, str]
    context: ProjectContext
    pending_confirmation: PendingConfirmation | None
    stage_attempts: int
    completed: bool


@dataclass(frozen=True)
class ConversationState:
    """
    Immutable snapshot of one design session.

    Invariants (checked by the store on every patch):
    - current_stage_id is registered
    - completed_stage_ids has no duplicates
    - pending_confirmation, when set, refers to current_stage_id
    """

    # === Position in the stage chain ===
    current_stage_id: StageId = StageId.CONTEXT
    completed_stage_ids: tuple[StageId, ...] = ()

    # === Captured answers ===
    project_data: Mapping[str, str] = field(default_factory=dict)
    context: ProjectContext = field(default_factory=ProjectContext)

    # === Confirmation flow ===
    pending_confirmation: PendingConfirmation | None = None
    stage_attempts: int = 0

    # === Terminal flag: set once the last stage completes ===
    completed: bool = False

    def __post_init__(self):
        # Read-only view over a private copy; changes go through apply_patch
        object.__setattr__(self, "project_data", MappingProxyType(dict(self.project_data)))

    def apply_patch(self, patch: StatePatch) -> "ConversationState":
        """
        Apply a partial update to the state.

        Creates a new ConversationState; containers are copied so a snapshot
        handed out earlier never observes later changes.

        Args:
            patch: Mapping of field names to new values.

        Returns:
            New ConversationState with the patch applied.

        Raises:
            ValueError: If the patch names a field that does not exist.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(patch) - known)
        if unknown:
            raise ValueError(f"Unknown state fields in patch: {', '.join(unknown)}")

        updates: dict[str, Any] = dict(patch)
        if "completed_stage_ids" in updates:
            updates["completed_stage_ids"] = tuple(
                StageId(s) for s in updates["completed_stage_ids"]
            )
        if "current_stage_id" in updates:
            updates["current_stage_id"] = StageId(updates["current_stage_id"])

        return replace(self, **updates) if updates else self

    def is_stage_complete(self, stage_id: StageId | str) -> bool:
        return StageId(stage_id) in self.completed_stage_ids

    def to_dict(self) -> dict:
        """Plain JSON-ready representation for external persistence."""
        return {
            "current_stage_id": self.current_stage_id.value,
            "completed_stage_ids": [s.value for s in self.completed_stage_ids],
            "project_data": dict(self.project_data),
            "context": self.context.to_dict(),
            "pending_confirmation": (
                self.pending_confirmation.to_dict() if self.pending_confirmation else None
            ),
            "stage_attempts": self.stage_attempts,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConversationState":
        pending = data.get("pending_confirmation")
        return cls(
            current_stage_id=StageId(data.get("current_stage_id", StageId.CONTEXT.value)),
            completed_stage_ids=tuple(StageId(s) for s in data.get("completed_stage_ids", [])),
            project_data={str(k): str(v) for k, v in data.get("project_data", {}).items()},
            context=ProjectContext.from_dict(data.get("context")),
            pending_confirmation=PendingConfirmation.from_dict(pending) if pending else None,
            stage_attempts=int(data.get("stage_attempts", 0)),
            completed=bool(data.get("completed", False)),
        )
