"""
Planning validators: Learning Journey, Deliverables, and the terminal check.
"""

from config import ValidationRules
from state import ProjectContext
from validators.common import DEFAULT_RULES, ValidationResult, accept, reject


def validate_journey_input(
    raw_input: str,
    context: ProjectContext,
    rules: ValidationRules = DEFAULT_RULES,
) -> ValidationResult:
    text = raw_input.strip()

    if len(text) < rules.journey_min_length:
        return reject(
            "Please describe how students will progress through this project. "
            "What activities and assessments will guide their learning?",
            [
                "Research phase -> Creative phase -> Sharing phase",
                "Individual work -> Collaboration -> Presentation",
                "Investigation -> Solution design -> Testing",
            ],
        )

    return accept("learningJourney", ["Great! Now let's define the deliverables."])


def validate_deliverables_input(
    raw_input: str,
    context: ProjectContext,
    rules: ValidationRules = DEFAULT_RULES,
) -> ValidationResult:
    text = raw_input.strip()

    if len(text) < rules.deliverables_min_length:
        return reject(
            "Please list what students will produce and how you'll assess it.",
            [
                "List 3+ milestones with names",
                "Name 1-3 final artifacts",
                "List 3-6 rubric criteria",
            ],
        )

    return accept("deliverables", ["Your project framework is complete."])


def validate_session_complete(raw_input: str, context: ProjectContext) -> ValidationResult:
    """Used once the last stage is done: nothing more can be accepted."""
    return reject(
        "This design session is complete. Your project blueprint has every stage filled in.",
        [
            "Review your project summary",
            "Export the blueprint to share with colleagues",
            "Start a new design session for another project",
        ],
    )
