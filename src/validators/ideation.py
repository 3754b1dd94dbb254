"""
Ideation validators: project context, Big Idea, Essential Question, Challenge.

Each validator is a pure function of its arguments. They are re-run during
confirmation, so they must not read or write anything else.
"""

from config import ValidationRules
from state import ProjectContext
from validators.common import (
    DEFAULT_RULES,
    ValidationResult,
    accept,
    contains_any,
    reject,
)


def validate_context_input(
    raw_input: str,
    context: ProjectContext,
    rules: ValidationRules = DEFAULT_RULES,
) -> ValidationResult:
    """
    Context gathering.

    A subject or grade keyword is accepted at any length and decides which
    context field the answer fills; subject keywords win when both appear.
    Other input only needs to reach the minimum length.
    """
    text = raw_input.strip()

    if contains_any(text, rules.subject_keywords):
        return accept(
            "subject",
            ["Tell me more about your students", "How long will this project run?"],
        )

    if contains_any(text, rules.grade_keywords):
        return accept(
            "gradeLevel",
            ["What subject area?", "How many weeks for this project?"],
        )

    if len(text) < rules.context_min_length:
        return reject(
            "Please tell me about your project context - subject, grade level, or duration.",
            [
                "I teach 7th grade science",
                "The subject is environmental studies",
                "My students are in year 10",
            ],
        )

    return accept(
        None,
        [
            "What subject will this project focus on?",
            "What grade level are your students?",
            "How long should this project run?",
        ],
    )


def validate_big_idea_input(
    raw_input: str,
    context: ProjectContext,
    rules: ValidationRules = DEFAULT_RULES,
) -> ValidationResult:
    """Big Idea: a theme of some substance, not a question."""
    text = raw_input.strip()

    if len(text) < rules.big_idea_min_length:
        return reject(
            "Please expand on your big idea. What real-world problem or theme should students explore?",
            [
                "Think about current events or community issues",
                "Consider interdisciplinary themes",
                "What sparks student curiosity?",
            ],
        )

    # A question here is probably an essential question typed too early
    if "?" in text:
        return reject(
            "That sounds like a question! A big idea is more of a theme or concept. "
            "What broader topic should students explore?",
            [
                "Environmental sustainability",
                "Community problem-solving",
                "Innovation and design",
            ],
        )

    return accept("bigIdea", ["Perfect! Now let's craft the essential question."])


def validate_essential_question_input(
    raw_input: str,
    context: ProjectContext,
    rules: ValidationRules = DEFAULT_RULES,
) -> ValidationResult:
    """Essential Question: must be phrased as a question and be open enough."""
    text = raw_input.strip()

    if "?" not in text:
        return reject(
            "Essential questions should end with a question mark. "
            "What question will drive student inquiry?",
            ["How can we...?", "What would happen if...?", "Why do you think...?"],
        )

    if len(text) < rules.essential_question_min_length:
        return reject(
            "Please expand your essential question. It should spark deep thinking and investigation.",
            [
                "Make it open-ended",
                "Connect to real-world applications",
                "Encourage multiple perspectives",
            ],
        )

    return accept("essentialQuestion", ["Excellent! Now let's define the challenge."])


def validate_challenge_input(
    raw_input: str,
    context: ProjectContext,
    rules: ValidationRules = DEFAULT_RULES,
) -> ValidationResult:
    """Challenge: an authentic task long enough to name, built around an action verb."""
    text = raw_input.strip()

    if len(text) < rules.challenge_min_length:
        return reject(
            "Please describe the challenge in more detail. "
            "What will students make or do, and for whom?",
            [
                "Design an evidence-based proposal for city council",
                "Build a prototype for the school exhibition",
                "Create a community resource that shifts behaviors",
            ],
        )

    if not contains_any(text, rules.action_verbs):
        verbs = ", ".join(rules.action_verbs)
        return reject(
            f"A challenge should ask students to act. Try starting with a verb like {verbs}.",
            [
                "Create a solution that addresses a local need",
                "Design and test a prototype for a real audience",
                "Develop a campaign for community stakeholders",
            ],
        )

    return accept("challenge", ["Great! Now let's map the learning journey."])
