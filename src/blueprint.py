"""
Blueprint: structured, read-only view over a session's captured answers.

The engine stores answers as plain text in project_data. This module turns
that text into the shape teachers see in the project summary: journey phases
with activities, deliverable milestones, artifacts, and rubric criteria, plus
an overall readiness status.

Nothing here mutates state.
"""

import re
from dataclasses import dataclass, field

from registry import DEFAULT_REGISTRY, StageRegistry
from state import ConversationState, ProjectContext, StageId


BULLET_PREFIX = re.compile(r"^\s*[-*•\d.()]+\s*")
ITEM_SEPARATORS = re.compile(r"\s*(?:[,;]+|->|→)\s*")
PHASE_NAME_SEPARATOR = re.compile(r"[:–—-]\s*")
RESOURCES_MARKER = re.compile(r"resources?:", re.IGNORECASE)

CRITERION_PATTERN = re.compile(r"criterion|criteria|rubric|level|performance")
ARTIFACT_PATTERN = re.compile(r"artifact|deliverable|product|presentation|prototype|exhibit|showcase")

DEFAULT_CRITERIA = ("Clarity of communication", "Evidence and reasoning", "Impact on audience")

MAX_RESOURCES = 10
MAX_MILESTONES = 6
MAX_ARTIFACTS = 4
MAX_CRITERIA = 6

READY_THRESHOLD = 0.95


@dataclass(frozen=True)
class Phase:
    name: str
    activities: tuple[str, ...] = ()


@dataclass(frozen=True)
class StageGuide:
    what: str
    why: str
    tip: str


@dataclass
class Blueprint:
    """Everything captured so far, in structured form."""
    context: ProjectContext = field(default_factory=ProjectContext)
    big_idea: str | None = None
    essential_question: str | None = None
    challenge: str | None = None
    phases: list[Phase] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    milestones: list[str] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)
    criteria: list[str] = field(default_factory=list)


STAGE_GUIDES: dict[StageId, StageGuide] = {
    StageId.CONTEXT: StageGuide(
        what="Describe your subject, grade level, and timeframe.",
        why="Every later suggestion is tailored to who you teach and what you teach.",
        tip="One sentence is enough, e.g. 'I teach 7th grade science'.",
    ),
    StageId.BIG_IDEA: StageGuide(
        what="Define the Big Idea, a transferable concept that anchors the project.",
        why="It keeps work meaningful and coherent, and guides every decision that follows.",
        tip="Write a short, strong concept; we can refine language later.",
    ),
    StageId.ESSENTIAL_QUESTION: StageGuide(
        what="Shape an Essential Question that invites sustained inquiry.",
        why="A powerful EQ drives curiosity and connects the Big Idea to action.",
        tip="Make it open-ended, debate-worthy, and tied to your Big Idea.",
    ),
    StageId.CHALLENGE: StageGuide(
        what="Define an authentic Challenge for a real audience.",
        why="It creates purpose and raises quality by bringing work to the world.",
        tip="Name the audience and outcome; keep scope achievable in your timeframe.",
    ),
    StageId.JOURNEY: StageGuide(
        what="Outline phases (Analyze -> Brainstorm -> Prototype -> Evaluate) with key activities.",
        why="A clear journey builds momentum and manages complexity.",
        tip="3-4 phases are enough. One or two activities per phase.",
    ),
    StageId.DELIVERABLES: StageGuide(
        what="List final artifacts, 3+ milestones, and a simple rubric.",
        why="Clarity on outcomes and quality supports student success.",
        tip="Aim for 1-3 artifacts, 3+ milestones, and 3-6 rubric criteria.",
    ),
}


def stage_guide(stage_id: StageId | str) -> StageGuide:
    return STAGE_GUIDES[StageId(stage_id)]


# =============================================================================
# Parsing
# =============================================================================

def parse_list(value: str) -> list[str]:
    """
    Split free text into items.

    Lines win when there are several (bullets and numbering are stripped);
    otherwise commas, semicolons, and arrows separate items.
    """
    normalized = value.replace("\r", "\n")
    lines = [BULLET_PREFIX.sub("", line).strip() for line in normalized.split("\n")]
    lines = [line for line in lines if line]
    if len(lines) > 1:
        return lines

    items = [item.strip() for item in ITEM_SEPARATORS.split(normalized) if item.strip()]
    if len(items) > 1:
        return items

    return [value.strip()] if value.strip() else []


def parse_phases(value: str) -> list[Phase]:
    """'Investigate: interviews, site visit' -> Phase('Investigate', ('interviews', 'site visit'))."""
    phases = []
    for index, item in enumerate(parse_list(value)):
        parts = PHASE_NAME_SEPARATOR.split(item, maxsplit=1)
        name = parts[0].strip() or f"Phase {index + 1}"
        activities: tuple[str, ...] = ()
        if len(parts) > 1:
            activities = tuple(a.strip() for a in re.split(r"[,;]+", parts[1]) if a.strip())
        phases.append(Phase(name=name, activities=activities))
    return phases


def parse_journey(value: str) -> tuple[list[Phase], list[str]]:
    """Phases from the text, plus resources listed after a 'Resources:' marker."""
    parts = RESOURCES_MARKER.split(value, maxsplit=1)
    phases = parse_phases(parts[0])
    resources = parse_list(parts[1])[:MAX_RESOURCES] if len(parts) > 1 else []
    return phases, resources


def classify_deliverable_item(item: str) -> str:
    """'criterion', 'artifact', or 'milestone'."""
    lowered = item.lower()
    if CRITERION_PATTERN.search(lowered):
        return "criterion"
    if ARTIFACT_PATTERN.search(lowered):
        return "artifact"
    return "milestone"


def parse_deliverables(value: str) -> tuple[list[str], list[str], list[str]]:
    """
    Sort deliverable items into milestones, artifacts, and rubric criteria.

    Short lists are padded: up to three numbered milestones, the first item as
    an artifact when none was named, and default criteria when none were given.
    """
    items = parse_list(value)
    milestones: list[str] = []
    artifacts: list[str] = []
    criteria: list[str] = []

    for item in items:
        kind = classify_deliverable_item(item)
        if kind == "criterion":
            criteria.append(re.sub(r"^(criterion|criteria)[:\s-]*", "", item, flags=re.IGNORECASE).strip())
        elif kind == "artifact":
            artifacts.append(item)
        else:
            milestones.append(item)

    while len(milestones) < min(3, len(items)):
        milestones.append(f"Milestone {len(milestones) + 1}")
    if not artifacts and items:
        artifacts.append(items[0])
    if not criteria:
        criteria.extend(DEFAULT_CRITERIA)

    unique_criteria = list(dict.fromkeys(c for c in criteria if c))
    return milestones[:MAX_MILESTONES], artifacts[:MAX_ARTIFACTS], unique_criteria[:MAX_CRITERIA]


# =============================================================================
# Views
# =============================================================================

def build_blueprint(state: ConversationState) -> Blueprint:
    data = state.project_data
    blueprint = Blueprint(
        context=state.context,
        big_idea=data.get("bigIdea"),
        essential_question=data.get("essentialQuestion"),
        challenge=data.get("challenge"),
    )

    journey = data.get("learningJourney")
    if journey:
        blueprint.phases, blueprint.resources = parse_journey(journey)

    deliverables = data.get("deliverables")
    if deliverables:
        blueprint.milestones, blueprint.artifacts, blueprint.criteria = parse_deliverables(deliverables)

    return blueprint


def compute_status(state: ConversationState, registry: StageRegistry = DEFAULT_REGISTRY) -> str:
    """'draft', 'in-progress', or 'ready', by share of required stages completed."""
    required = registry.required_stage_ids
    if not required:
        return "ready" if state.completed else "draft"

    done = sum(1 for stage_id in required if stage_id in state.completed_stage_ids)
    score = done / len(required)
    if score >= READY_THRESHOLD:
        return "ready"
    if score > 0:
        return "in-progress"
    return "draft"


def summarize_state(state: ConversationState) -> str:
    """Plain-text project summary, also used as context for the coaching model."""
    blueprint = build_blueprint(state)
    context = blueprint.context
    lines: list[str] = []

    if context.subject:
        lines.append(f"Subject: {context.subject}")
    if context.grade_level:
        lines.append(f"Grade Level: {context.grade_level}")
    if context.duration:
        lines.append(f"Duration: {context.duration}")
    if blueprint.big_idea:
        lines.append(f"Big Idea: {blueprint.big_idea}")
    if blueprint.essential_question:
        lines.append(f"Essential Question: {blueprint.essential_question}")
    if blueprint.challenge:
        lines.append(f"Challenge: {blueprint.challenge}")

    if blueprint.phases:
        phase_lines = []
        for index, phase in enumerate(blueprint.phases, start=1):
            activities = f" - activities: {', '.join(phase.activities[:2])}" if phase.activities else ""
            phase_lines.append(f"Phase {index}: {phase.name}{activities}")
        lines.append("Journey Plan:\n" + "\n".join(phase_lines))
    if blueprint.resources:
        lines.append(f"Resources: {', '.join(blueprint.resources)}")

    if blueprint.milestones:
        lines.append(f"Milestones: {', '.join(blueprint.milestones[:3])}")
    if blueprint.artifacts:
        lines.append(f"Artifacts: {', '.join(blueprint.artifacts[:3])}")
    if blueprint.criteria:
        lines.append(f"Rubric Criteria: {', '.join(blueprint.criteria[:4])}")

    if not lines:
        lines.append("No substantive entries captured yet.")

    stage_line = "Current Stage: complete" if state.completed else (
        f"Current Stage: {state.current_stage_id.display_name}"
    )
    return "\n".join([stage_line] + lines)
