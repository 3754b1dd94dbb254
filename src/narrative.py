"""
Narrative/Refinement Generator: coaching copy for the stage engine.

Selects response templates per stage and intent, and fills placeholders
({value}, {subject}, {gradeLevel}, {bigIdea}, {essentialQuestion}) from the
ProjectContext.

Choice among equivalent templates is random, through an injectable
random.Random, so tests can pin it with a seed. The randomness only changes
outgoing text; nothing in the validator or transition code reads it.
"""

import random
import re

from state import ConfirmationLevel, ProjectContext, StageId


PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")

PLACEHOLDER_DEFAULTS = {
    "subject": "your subject",
    "gradeLevel": "your students",
    "bigIdea": "this concept",
    "essentialQuestion": "your essential question",
    "challenge": "the challenge",
    "duration": "your timeframe",
}


# Acknowledgment phrase sets: positive -> build -> transition
ACKNOWLEDGMENT_PATTERNS: dict[StageId, dict[str, list[str]]] = {
    StageId.CONTEXT: {
        "positive": [
            "Thanks! '{value}' gives me a clear picture of your setting.",
            "Great, '{value}' helps me tailor everything that follows.",
            "Perfect! Knowing '{value}' will keep our design grounded.",
        ],
        "build": [
            "We'll shape this project around {subject}.",
            "I'll keep {gradeLevel} in mind at every step.",
            "Context like this makes the rest of the design much sharper.",
        ],
        "transition": [
            "Let's name the big idea at the heart of the project.",
            "Now let's find the theme students will explore.",
            "Ready to choose the big idea?",
        ],
    },
    StageId.BIG_IDEA: {
        "positive": [
            "Excellent! '{value}' is a powerful conceptual foundation.",
            "Perfect! '{value}' gives students a rich area to explore.",
            "Great choice! '{value}' connects beautifully with your curriculum.",
        ],
        "build": [
            "This will help students dive deep into {subject}.",
            "Your {gradeLevel} students will find meaningful connections here.",
            "This opens up authentic learning opportunities.",
        ],
        "transition": [
            "With that foundation, let's shape the driving question.",
            "Now let's craft the essential question that will guide inquiry.",
            "Ready to develop the question that will spark curiosity?",
        ],
    },
    StageId.ESSENTIAL_QUESTION: {
        "positive": [
            "Brilliant! '{value}' will drive deep inquiry.",
            "Excellent question! '{value}' is open-ended and thought-provoking.",
            "Perfect! '{value}' connects to your big idea beautifully.",
        ],
        "build": [
            "This question will guide students through meaningful investigation.",
            "Students will explore multiple perspectives with this question.",
            "This creates space for authentic discovery and debate.",
        ],
        "transition": [
            "Now let's define the real-world challenge students will tackle.",
            "Ready to create the authentic problem students will solve?",
            "Time to design the challenge that makes learning meaningful.",
        ],
    },
    StageId.CHALLENGE: {
        "positive": [
            "Outstanding! '{value}' is an authentic, engaging challenge.",
            "Perfect! '{value}' gives students real purpose and audience.",
            "Excellent! '{value}' connects learning to meaningful action.",
        ],
        "build": [
            "Students will see the real-world impact of their learning.",
            "This challenge creates genuine motivation for deep work.",
            "Your students will develop solutions that truly matter.",
        ],
        "transition": [
            "Now let's map out how students will work through this challenge.",
            "Ready to design the learning journey through the creative process?",
            "Time to plan the phases that will guide student success.",
        ],
    },
    StageId.JOURNEY: {
        "positive": [
            "Excellent! This learning journey will guide students through meaningful discovery.",
            "Perfect! '{value}' creates a clear path through the creative process.",
            "Great structure! This will help students build deep understanding.",
        ],
        "build": [
            "Students will develop both skills and knowledge through this journey.",
            "This progression supports authentic learning and growth.",
            "Each phase builds naturally toward the final challenge.",
        ],
        "transition": [
            "Now let's define what students will create and how you'll assess it.",
            "Ready to design the deliverables and assessment approach?",
            "Time to plan how students will demonstrate their learning.",
        ],
    },
    StageId.DELIVERABLES: {
        "positive": [
            "Excellent! '{value}' provides clear expectations and authentic assessment.",
            "Perfect! This assessment approach honors both process and product.",
            "Outstanding! Students will demonstrate real mastery through these deliverables.",
        ],
        "build": [
            "This assessment strategy supports deep learning and reflection.",
            "Students will see their growth throughout the entire project.",
            "These deliverables connect directly to your learning objectives.",
        ],
        "transition": [
            "Your project blueprint is now complete!",
            "Ready to export and begin implementation?",
            "Time to bring this amazing project to your students!",
        ],
    },
}


# Alternative phrasings offered when the teacher asks to refine
REFINEMENT_SUGGESTIONS: dict[StageId, tuple[str, str, str]] = {
    StageId.CONTEXT: (
        "I teach {subject} to {gradeLevel}",
        "This project is for a {subject} class over {duration}",
        "My students are {gradeLevel} and the topic is {subject}",
    ),
    StageId.BIG_IDEA: (
        "The intersection of {subject} and real-world impact",
        "Systems thinking in {subject}",
        "How {subject} shapes our community",
    ),
    StageId.ESSENTIAL_QUESTION: (
        "How might we use {subject} to solve community problems?",
        "Why does {bigIdea} matter for our future?",
        "What would happen if we reimagined {subject}?",
    ),
    StageId.CHALLENGE: (
        "Create a {subject}-based solution that addresses local needs",
        "Design and test a prototype that demonstrates your learning",
        "Develop a presentation for community stakeholders",
    ),
    StageId.JOURNEY: (
        "Students research, analyze, brainstorm, prototype, and present solutions",
        "Guided discovery through investigation, ideation, creation, and reflection",
        "Scaffolded progression from understanding to creating to sharing",
    ),
    StageId.DELIVERABLES: (
        "Portfolio, prototype, and public presentation with peer feedback",
        "Process documentation, final product, and reflection essay",
        "Research report, solution proposal, and community showcase",
    ),
}


# One-line handoff once a stage is captured
TRANSITION_COPY: dict[StageId, str] = {
    StageId.CONTEXT: "Context noted. Next up: the big idea.",
    StageId.BIG_IDEA: "Big Idea captured. Next up: craft an Essential Question that invites inquiry.",
    StageId.ESSENTIAL_QUESTION: "Excellent Essential Question. Let's define the authentic Challenge.",
    StageId.CHALLENGE: "Challenge locked in. Outline the journey phases so we can see the path.",
    StageId.JOURNEY: "Journey mapped. Finish strong with deliverables, milestones, and rubric criteria.",
}

COMPLETION_MESSAGE = "Project framework complete! Ready to build your full project plan."

REVIEW_OPTIONS = ("Let's continue", "Refine it")
REFINE_OPTIONS = ("Yes, continue", "Let me adjust it")


def fill_placeholders(template: str, values: dict[str, str]) -> str:
    """
    Substitute {name} placeholders in one pass.

    Single-pass substitution keeps braces inside teacher-typed values literal.
    Unknown placeholders are left as written.
    """
    def _sub(match: re.Match) -> str:
        key = match.group(1)
        if key in values and values[key]:
            return values[key]
        return PLACEHOLDER_DEFAULTS.get(key, match.group(0))

    return PLACEHOLDER_PATTERN.sub(_sub, template)


def placeholder_values(context: ProjectContext, value: str | None = None) -> dict[str, str]:
    values = context.to_dict()
    if value is not None:
        values["value"] = value.strip()
    return values


class NarrativeGenerator:
    """
    Template selection for acknowledgments, check-ins, and refinement options.

    Usage:
        narrative = NarrativeGenerator(rng=random.Random(7))
        text = narrative.acknowledgment(StageId.BIG_IDEA, "Water as a shared resource", context)
    """

    def __init__(self, rng: random.Random | None = None):
        """
        Args:
            rng: Random source for template choice. A fresh unseeded
                random.Random is used when None.
        """
        self.rng = rng if rng is not None else random.Random()

    def _choose(self, options: list[str]) -> str:
        return self.rng.choice(options)

    def acknowledgment(self, stage_id: StageId, value: str, context: ProjectContext) -> str:
        """Three-part acknowledgment: positive, build, transition."""
        patterns = ACKNOWLEDGMENT_PATTERNS[StageId(stage_id)]
        values = placeholder_values(context, value)
        parts = [
            fill_placeholders(self._choose(patterns[intent]), values)
            for intent in ("positive", "build", "transition")
        ]
        return "\n\n".join(parts)

    def refinement_suggestions(self, stage_id: StageId, context: ProjectContext) -> tuple[str, ...]:
        """The fixed three alternative phrasings for a stage."""
        values = placeholder_values(context)
        return tuple(
            fill_placeholders(template, values)
            for template in REFINEMENT_SUGGESTIONS[StageId(stage_id)]
        )

    def check_in(
        self,
        stage_id: StageId,
        value: str,
        level: ConfirmationLevel,
    ) -> tuple[str, tuple[str, ...]]:
        """
        Message and options shown while an input waits for confirmation.

        'review' builds forward; 'refine' asks gently whether the input
        really captures what the teacher means.
        """
        stage_display = StageId(stage_id).display_name
        value = value.strip()
        if ConfirmationLevel(level) is ConfirmationLevel.REVIEW:
            message = f'"{value}" - I can work with this! Ready to build on it and move forward?'
            return message, REVIEW_OPTIONS
        message = (
            f'I want to make sure I understand your {stage_display} correctly: "{value}". '
            "Does this capture what you're thinking?"
        )
        return message, REFINE_OPTIONS

    def refine_request(self, stage_id: StageId, pending_value: str | None) -> str:
        stage_display = StageId(stage_id).display_name
        if pending_value:
            return (
                f'Let\'s refine your {stage_display}. Current: "{pending_value.strip()}". '
                "Adjust it, or try one of these approaches:"
            )
        return f"Let's refine your {stage_display}. Try one of these approaches:"

    def stage_prompt(self, stage_id: StageId, context: ProjectContext) -> str:
        """Question that opens a stage. Deterministic: no template choice."""
        stage_id = StageId(stage_id)

        if stage_id is StageId.CONTEXT:
            return (
                "Let's start by understanding your project context. "
                "What subject area and grade level are you designing for?"
            )

        if stage_id is StageId.BIG_IDEA:
            subject = f" for {context.subject}" if context.subject else ""
            grade = f" with {context.grade_level} students" if context.grade_level else ""
            return (
                f"What big idea or theme would you like students to explore{subject}{grade}? "
                "Think about real-world problems or compelling concepts."
            )

        if stage_id is StageId.ESSENTIAL_QUESTION:
            if context.big_idea:
                return (
                    "Now let's craft an essential question that will drive student inquiry "
                    f'around "{context.big_idea}". What question will spark their investigation?'
                )
            return "Let's craft an Essential Question. Make it open-ended and debate-worthy."

        if stage_id is StageId.CHALLENGE:
            if context.essential_question:
                return (
                    f'Your Essential Question is "{context.essential_question}". '
                    "What real-world challenge will students tackle to answer it?"
                )
            return (
                "Define a concrete challenge for a real audience. "
                "Include who benefits and what they receive."
            )

        if stage_id is StageId.JOURNEY:
            return (
                "How will students progress through this project? Describe the key phases "
                "of their learning journey and how you'll assess their growth."
            )

        return (
            "List 3+ milestones, the final artifacts students will produce, "
            "and 3-6 rubric criteria that show quality."
        )

    def transition_message(self, stage_id: StageId) -> str | None:
        return TRANSITION_COPY.get(StageId(stage_id))

    def completion_message(self) -> str:
        return COMPLETION_MESSAGE

    def fallback(self, stage_id: StageId, context: ProjectContext, gating_reason: str | None = None) -> str:
        """Stage prompt followed by the reason the stage is still open."""
        base = self.stage_prompt(stage_id, context)
        if not gating_reason:
            return base
        reason = " ".join(gating_reason.split())
        if not reason.endswith("."):
            reason = f"{reason}."
        return f"{base} {reason}"
