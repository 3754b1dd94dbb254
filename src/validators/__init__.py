"""
Validators: per-stage input heuristics.

Each validator follows the pattern:
    def validate_stage(raw_input: str, context: ProjectContext, rules) -> ValidationResult

Validators are pure and never raise; a failing check returns is_valid=False
with an error message and suggestions the caller can present verbatim.

Modules:
- common: ValidationResult and shared helpers
- ideation: context, Big Idea, Essential Question, Challenge
- planning: Learning Journey, Deliverables, session complete
"""

from validators.common import (
    DEFAULT_RULES,
    ValidationResult,
    Validator,
    accept,
    reject,
)
from validators.ideation import (
    validate_context_input,
    validate_big_idea_input,
    validate_essential_question_input,
    validate_challenge_input,
)
from validators.planning import (
    validate_journey_input,
    validate_deliverables_input,
    validate_session_complete,
)

__all__ = [
    # Types
    "DEFAULT_RULES",
    "ValidationResult",
    "Validator",
    "accept",
    "reject",
    # Ideation
    "validate_context_input",
    "validate_big_idea_input",
    "validate_essential_question_input",
    "validate_challenge_input",
    # Planning
    "validate_journey_input",
    "validate_deliverables_input",
    "validate_session_complete",
]
