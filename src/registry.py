"""
Stage Registry: the ordered, immutable table of design stages.

Stages form a singly linked chain (next/previous) with no cycles. The last
stage has next_stage_id=None, which marks the end of the session.

The registry is read-only after construction, so one instance can be shared
by every session.
"""

from dataclasses import dataclass
from functools import partial
from typing import Iterable, Iterator

from config import ValidationRules
from errors import RegistryConfigError, UnknownStageError
from state import StageId
from validators import (
    DEFAULT_RULES,
    Validator,
    validate_big_idea_input,
    validate_challenge_input,
    validate_context_input,
    validate_deliverables_input,
    validate_essential_question_input,
    validate_journey_input,
)


@dataclass(frozen=True)
class Stage:
    """One step of the design conversation."""
    id: StageId
    name: str
    description: str
    required: bool
    validate: Validator
    next_stage_id: StageId | None
    previous_stage_id: StageId | None


class StageRegistry:
    """
    Lookup table over a validated stage chain.

    Usage:
        registry = build_registry()
        stage = registry.get_initial_stage()
        while stage is not None:
            ...
            stage = registry.next_stage(stage.id)
    """

    def __init__(self, stages: Iterable[Stage], initial_stage_id: StageId | None = None):
        stages = list(stages)
        if not stages:
            raise RegistryConfigError("Stage registry must contain at least one stage")

        by_id: dict[StageId, Stage] = {}
        for stage in stages:
            if stage.id in by_id:
                raise RegistryConfigError(f"Duplicate stage id: {stage.id.value}")
            by_id[stage.id] = stage

        self._stages = by_id
        self._initial_id = initial_stage_id if initial_stage_id is not None else stages[0].id
        if self._initial_id not in by_id:
            raise RegistryConfigError(f"Initial stage {self._initial_id!r} is not registered")

        self._order = self._check_chain()

    def _check_chain(self) -> tuple[StageId, ...]:
        """Walk the forward chain and return it; raise on any inconsistency."""
        for stage in self._stages.values():
            for link in (stage.next_stage_id, stage.previous_stage_id):
                if link is not None and link not in self._stages:
                    raise RegistryConfigError(
                        f"Stage {stage.id.value} links to unregistered stage {link!r}"
                    )

        if self._stages[self._initial_id].previous_stage_id is not None:
            raise RegistryConfigError("Initial stage must not have a previous stage")

        order: list[StageId] = []
        seen: set[StageId] = set()
        current: StageId | None = self._initial_id
        previous: StageId | None = None
        while current is not None:
            if current in seen:
                raise RegistryConfigError(f"Cycle in stage chain at {current.value}")
            stage = self._stages[current]
            if stage.previous_stage_id != previous:
                raise RegistryConfigError(
                    f"Stage {current.value} has previous_stage_id "
                    f"{stage.previous_stage_id!r}, expected {previous!r}"
                )
            seen.add(current)
            order.append(current)
            previous, current = current, stage.next_stage_id

        unreachable = set(self._stages) - seen
        if unreachable:
            names = ", ".join(sorted(s.value for s in unreachable))
            raise RegistryConfigError(f"Stages not reachable from the initial stage: {names}")

        return tuple(order)

    def get_stage(self, stage_id: StageId | str) -> Stage:
        """Return the stage, or raise UnknownStageError."""
        try:
            key = StageId(stage_id)
        except ValueError:
            raise UnknownStageError(stage_id) from None
        try:
            return self._stages[key]
        except KeyError:
            raise UnknownStageError(stage_id) from None

    def get_initial_stage(self) -> Stage:
        return self._stages[self._initial_id]

    def next_stage(self, stage_id: StageId | str) -> Stage | None:
        next_id = self.get_stage(stage_id).next_stage_id
        return self._stages[next_id] if next_id is not None else None

    def previous_stage(self, stage_id: StageId | str) -> Stage | None:
        previous_id = self.get_stage(stage_id).previous_stage_id
        return self._stages[previous_id] if previous_id is not None else None

    def position(self, stage_id: StageId | str) -> int:
        """Zero-based index of the stage in chain order."""
        return self._order.index(self.get_stage(stage_id).id)

    @property
    def order(self) -> tuple[StageId, ...]:
        return self._order

    @property
    def required_stage_ids(self) -> tuple[StageId, ...]:
        return tuple(s for s in self._order if self._stages[s].required)

    def __contains__(self, stage_id: object) -> bool:
        try:
            return StageId(stage_id) in self._stages
        except ValueError:
            return False

    def __iter__(self) -> Iterator[Stage]:
        return (self._stages[s] for s in self._order)

    def __len__(self) -> int:
        return len(self._stages)


# =============================================================================
# Default Stage Table
# =============================================================================

# (id, name, description, validator)
STAGE_DEFINITIONS = [
    (
        StageId.CONTEXT,
        "Project Context",
        "Gather basic project information",
        validate_context_input,
    ),
    (
        StageId.BIG_IDEA,
        "Big Idea",
        "Define the central theme students will explore",
        validate_big_idea_input,
    ),
    (
        StageId.ESSENTIAL_QUESTION,
        "Essential Question",
        "Craft the driving question for the project",
        validate_essential_question_input,
    ),
    (
        StageId.CHALLENGE,
        "Challenge",
        "Define the authentic task students will tackle",
        validate_challenge_input,
    ),
    (
        StageId.JOURNEY,
        "Learning Journey",
        "Design the phases students move through",
        validate_journey_input,
    ),
    (
        StageId.DELIVERABLES,
        "Deliverables",
        "Decide what students produce and how it is assessed",
        validate_deliverables_input,
    ),
]


def build_registry(
    rules: ValidationRules = DEFAULT_RULES,
    optional_stages: Iterable[str] = (),
) -> StageRegistry:
    """
    Build the standard six-stage chain with validators bound to rules.

    Args:
        rules: Validation thresholds and keyword lists.
        optional_stages: Stage ids to register with required=False.

    Returns:
        A validated StageRegistry.
    """
    optional = {StageId(s) for s in optional_stages}
    ids = [definition[0] for definition in STAGE_DEFINITIONS]
    stages = []
    for index, (stage_id, name, description, validator) in enumerate(STAGE_DEFINITIONS):
        stages.append(Stage(
            id=stage_id,
            name=name,
            description=description,
            required=stage_id not in optional,
            validate=partial(validator, rules=rules),
            next_stage_id=ids[index + 1] if index + 1 < len(ids) else None,
            previous_stage_id=ids[index - 1] if index > 0 else None,
        ))
    return StageRegistry(stages)


DEFAULT_REGISTRY = build_registry()
