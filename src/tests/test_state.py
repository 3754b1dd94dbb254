"""
Tests for state.py module.

Tests:
- StageId, ConfirmationLevel, InputSource enums
- ProjectContext
- PendingConfirmation
- ConversationState and apply_patch
"""

import os
import sys
import json
import pytest
from dataclasses import FrozenInstanceError

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from state import (
    ConfirmationLevel,
    ConversationState,
    InputSource,
    PendingConfirmation,
    ProjectContext,
    StageId,
    StatePatch,
)


# =============================================================================
# Test Enums
# =============================================================================

class TestStageId:
    """Tests for StageId enum."""

    def test_all_expected_stages_exist(self):
        expected = ["CONTEXT", "BIG_IDEA", "ESSENTIAL_QUESTION", "CHALLENGE", "JOURNEY", "DELIVERABLES"]
        assert [s.value for s in StageId] == expected

    def test_display_name(self):
        assert StageId.ESSENTIAL_QUESTION.display_name == "essential question"
        assert StageId.BIG_IDEA.display_name == "big idea"

    def test_string_comparison(self):
        """StageId compares equal to its string value."""
        assert StageId.CHALLENGE == "CHALLENGE"
        assert StageId("JOURNEY") is StageId.JOURNEY


class TestConfirmationLevel:

    def test_values(self):
        assert {level.value for level in ConfirmationLevel} == {"immediate", "review", "refine"}


class TestInputSource:

    def test_values(self):
        assert {source.value for source in InputSource} == {"typed", "suggestion", "refinement"}

    def test_invalid_source_raises(self):
        with pytest.raises(ValueError):
            InputSource("pasted")


# =============================================================================
# Test ProjectContext
# =============================================================================

class TestProjectContext:
    """Tests for ProjectContext dataclass."""

    def test_defaults_are_none(self):
        context = ProjectContext()
        assert context.subject is None
        assert context.grade_level is None
        assert context.big_idea is None

    def test_context_is_frozen(self):
        context = ProjectContext(subject="Science")
        with pytest.raises(FrozenInstanceError):
            context.subject = "Math"

    def test_get_by_data_key(self):
        context = ProjectContext(grade_level="7th grade")
        assert context.get("gradeLevel") == "7th grade"
        assert context.get("learningJourney") is None

    def test_with_value_sets_field(self):
        context = ProjectContext(subject="Science")
        updated = context.with_value("bigIdea", "Water")

        assert updated.big_idea == "Water"
        assert updated.subject == "Science"
        assert context.big_idea is None

    def test_with_value_unknown_key_returns_self(self):
        context = ProjectContext()
        assert context.with_value("deliverables", "Poster") is context

    def test_to_dict_uses_camel_case_and_skips_none(self):
        context = ProjectContext(subject="Science", grade_level="7th grade")
        assert context.to_dict() == {"subject": "Science", "gradeLevel": "7th grade"}

    def test_from_dict_accepts_both_key_styles(self):
        context = ProjectContext.from_dict({"gradeLevel": "5th", "big_idea": "Energy"})
        assert context.grade_level == "5th"
        assert context.big_idea == "Energy"

    def test_from_dict_none(self):
        assert ProjectContext.from_dict(None) == ProjectContext()


# =============================================================================
# Test PendingConfirmation
# =============================================================================

class TestPendingConfirmation:

    def test_dict_round_trip(self):
        pending = PendingConfirmation(
            stage_id=StageId.BIG_IDEA,
            pending_value="Energy",
            mode=ConfirmationLevel.REVIEW,
            attempts=2,
            source=InputSource.REFINEMENT,
        )
        data = pending.to_dict()

        assert data["stage_id"] == "BIG_IDEA"
        assert data["mode"] == "review"
        assert PendingConfirmation.from_dict(data) == pending

    def test_from_dict_default_source(self):
        pending = PendingConfirmation.from_dict({
            "stage_id": "CONTEXT",
            "pending_value": "Science",
            "mode": "refine",
        })
        assert pending.source is InputSource.TYPED
        assert pending.attempts == 0


# =============================================================================
# Test ConversationState
# =============================================================================

class TestConversationState:
    """Tests for ConversationState dataclass."""

    def test_create_default_state(self):
        state = ConversationState()

        assert state.current_stage_id is StageId.CONTEXT
        assert state.completed_stage_ids == ()
        assert state.project_data == {}
        assert state.context == ProjectContext()
        assert state.pending_confirmation is None
        assert state.stage_attempts == 0
        assert state.completed is False

    def test_state_is_frozen(self):
        state = ConversationState()
        with pytest.raises(FrozenInstanceError):
            state.stage_attempts = 3

    def test_is_stage_complete(self):
        state = ConversationState(completed_stage_ids=(StageId.CONTEXT,))
        assert state.is_stage_complete("CONTEXT")
        assert not state.is_stage_complete(StageId.BIG_IDEA)


class TestApplyPatch:
    """Tests for ConversationState.apply_patch."""

    def test_returns_new_instance(self):
        state = ConversationState()
        patch: StatePatch = {"stage_attempts": 2}
        new_state = state.apply_patch(patch)

        assert new_state is not state
        assert new_state.stage_attempts == 2
        assert state.stage_attempts == 0

    def test_empty_patch_returns_same_instance(self):
        state = ConversationState()
        assert state.apply_patch({}) is state

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError, match="nextStage"):
            ConversationState().apply_patch({"nextStage": "BIG_IDEA"})

    def test_normalizes_stage_ids(self):
        new_state = ConversationState().apply_patch({
            "current_stage_id": "BIG_IDEA",
            "completed_stage_ids": ["CONTEXT"],
        })
        assert new_state.current_stage_id is StageId.BIG_IDEA
        assert new_state.completed_stage_ids == (StageId.CONTEXT,)

    def test_project_data_is_copied(self):
        """Later changes to the patch dict do not leak into the snapshot."""
        data = {"bigIdea": "Energy"}
        new_state = ConversationState().apply_patch({"project_data": data})
        data["bigIdea"] = "Changed"

        assert new_state.project_data == {"bigIdea": "Energy"}

    def test_project_data_is_read_only(self):
        data = {"bigIdea": "Energy"}
        state = ConversationState(project_data=data)
        data["bigIdea"] = "Changed"

        assert state.project_data["bigIdea"] == "Energy"
        with pytest.raises(TypeError):
            state.project_data["bigIdea"] = "Changed"

    def test_to_dict_gives_plain_dict(self):
        state = ConversationState(project_data={"bigIdea": "Energy"})
        assert type(state.to_dict()["project_data"]) is dict


class TestStateSerialization:

    def test_to_dict_is_json_ready(self):
        state = ConversationState(
            current_stage_id=StageId.ESSENTIAL_QUESTION,
            completed_stage_ids=(StageId.CONTEXT, StageId.BIG_IDEA),
            project_data={"bigIdea": "Energy"},
            context=ProjectContext(subject="Science", big_idea="Energy"),
            pending_confirmation=PendingConfirmation(
                stage_id=StageId.ESSENTIAL_QUESTION,
                pending_value="Why energy?",
                mode=ConfirmationLevel.REFINE,
                attempts=3,
            ),
            stage_attempts=3,
        )
        data = json.loads(json.dumps(state.to_dict()))

        assert data["current_stage_id"] == "ESSENTIAL_QUESTION"
        assert data["completed_stage_ids"] == ["CONTEXT", "BIG_IDEA"]
        assert ConversationState.from_dict(data) == state

    def test_from_dict_defaults(self):
        assert ConversationState.from_dict({}) == ConversationState()
