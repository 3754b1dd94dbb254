"""
Tests for registry.py module.

Tests:
- Default stage chain
- Stage lookups and navigation
- Chain validation (duplicates, dangling links, cycles, unreachable stages)
- build_registry with custom rules and optional stages
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import ValidationRules
from errors import RegistryConfigError, UnknownStageError
from registry import DEFAULT_REGISTRY, Stage, StageRegistry, build_registry
from state import ProjectContext, StageId
from validators import accept


def make_stage(stage_id, next_id=None, previous_id=None, required=True):
    return Stage(
        id=stage_id,
        name=stage_id.value.title(),
        description="",
        required=required,
        validate=lambda raw, context: accept(),
        next_stage_id=next_id,
        previous_stage_id=previous_id,
    )


# =============================================================================
# Test Default Chain
# =============================================================================

class TestDefaultRegistry:
    """Tests for the standard six-stage chain."""

    def test_order(self):
        assert DEFAULT_REGISTRY.order == (
            StageId.CONTEXT,
            StageId.BIG_IDEA,
            StageId.ESSENTIAL_QUESTION,
            StageId.CHALLENGE,
            StageId.JOURNEY,
            StageId.DELIVERABLES,
        )

    def test_initial_stage_has_no_previous(self):
        initial = DEFAULT_REGISTRY.get_initial_stage()
        assert initial.id is StageId.CONTEXT
        assert initial.previous_stage_id is None

    def test_last_stage_has_no_next(self):
        assert DEFAULT_REGISTRY.next_stage(StageId.DELIVERABLES) is None
        assert DEFAULT_REGISTRY.get_stage(StageId.DELIVERABLES).next_stage_id is None

    def test_next_and_previous(self):
        assert DEFAULT_REGISTRY.next_stage(StageId.BIG_IDEA).id is StageId.ESSENTIAL_QUESTION
        assert DEFAULT_REGISTRY.previous_stage(StageId.BIG_IDEA).id is StageId.CONTEXT
        assert DEFAULT_REGISTRY.previous_stage(StageId.CONTEXT) is None

    def test_all_stages_required_by_default(self):
        assert DEFAULT_REGISTRY.required_stage_ids == DEFAULT_REGISTRY.order

    def test_position(self):
        assert DEFAULT_REGISTRY.position("CONTEXT") == 0
        assert DEFAULT_REGISTRY.position(StageId.DELIVERABLES) == 5

    def test_container_protocol(self):
        assert len(DEFAULT_REGISTRY) == 6
        assert "CHALLENGE" in DEFAULT_REGISTRY
        assert "HOMEWORK" not in DEFAULT_REGISTRY
        assert [s.id for s in DEFAULT_REGISTRY] == list(DEFAULT_REGISTRY.order)

    def test_validators_are_bound(self):
        """Each stage validator takes only (raw_input, context)."""
        stage = DEFAULT_REGISTRY.get_stage(StageId.BIG_IDEA)
        result = stage.validate("Energy transitions in our town", ProjectContext())
        assert result.is_valid
        assert result.data_key == "bigIdea"


# =============================================================================
# Test Lookups
# =============================================================================

class TestGetStage:

    def test_get_by_string(self):
        assert DEFAULT_REGISTRY.get_stage("JOURNEY").id is StageId.JOURNEY

    def test_unknown_string_raises(self):
        with pytest.raises(UnknownStageError) as exc_info:
            DEFAULT_REGISTRY.get_stage("HOMEWORK")
        assert exc_info.value.stage_id == "HOMEWORK"
        assert str(exc_info.value) == "Unknown stage: 'HOMEWORK'"

    def test_unknown_stage_is_key_error(self):
        with pytest.raises(KeyError):
            DEFAULT_REGISTRY.get_stage("HOMEWORK")

    def test_unregistered_stage_id_raises(self):
        registry = StageRegistry([make_stage(StageId.CONTEXT)])
        with pytest.raises(UnknownStageError):
            registry.get_stage(StageId.BIG_IDEA)


# =============================================================================
# Test Chain Validation
# =============================================================================

class TestChainValidation:
    """The registry refuses malformed stage tables."""

    def test_empty_registry(self):
        with pytest.raises(RegistryConfigError):
            StageRegistry([])

    def test_single_stage(self):
        registry = StageRegistry([make_stage(StageId.CONTEXT)])
        assert registry.order == (StageId.CONTEXT,)

    def test_duplicate_ids(self):
        with pytest.raises(RegistryConfigError, match="Duplicate"):
            StageRegistry([make_stage(StageId.CONTEXT), make_stage(StageId.CONTEXT)])

    def test_dangling_next_link(self):
        with pytest.raises(RegistryConfigError, match="unregistered"):
            StageRegistry([make_stage(StageId.CONTEXT, next_id=StageId.BIG_IDEA)])

    def test_initial_stage_with_previous(self):
        stages = [
            make_stage(StageId.CONTEXT, next_id=StageId.BIG_IDEA, previous_id=StageId.BIG_IDEA),
            make_stage(StageId.BIG_IDEA, next_id=None, previous_id=StageId.CONTEXT),
        ]
        with pytest.raises(RegistryConfigError, match="Initial stage"):
            StageRegistry(stages)

    def test_cycle(self):
        stages = [
            make_stage(StageId.CONTEXT, next_id=StageId.BIG_IDEA),
            make_stage(StageId.BIG_IDEA, next_id=StageId.CHALLENGE, previous_id=StageId.CONTEXT),
            make_stage(StageId.CHALLENGE, next_id=StageId.BIG_IDEA, previous_id=StageId.BIG_IDEA),
        ]
        with pytest.raises(RegistryConfigError):
            StageRegistry(stages)

    def test_mismatched_previous_link(self):
        stages = [
            make_stage(StageId.CONTEXT, next_id=StageId.BIG_IDEA),
            make_stage(StageId.BIG_IDEA, previous_id=None),
        ]
        with pytest.raises(RegistryConfigError, match="previous_stage_id"):
            StageRegistry(stages)

    def test_unreachable_stage(self):
        stages = [
            make_stage(StageId.CONTEXT),
            make_stage(StageId.JOURNEY),
        ]
        with pytest.raises(RegistryConfigError, match="JOURNEY"):
            StageRegistry(stages)

    def test_unregistered_initial_stage(self):
        with pytest.raises(RegistryConfigError):
            StageRegistry([make_stage(StageId.CONTEXT)], initial_stage_id=StageId.BIG_IDEA)


# =============================================================================
# Test build_registry
# =============================================================================

class TestBuildRegistry:

    def test_custom_rules_are_bound(self):
        registry = build_registry(ValidationRules(big_idea_min_length=40))
        stage = registry.get_stage(StageId.BIG_IDEA)

        assert not stage.validate("Energy transitions in our town", ProjectContext()).is_valid

    def test_optional_stages(self):
        registry = build_registry(optional_stages=["JOURNEY"])

        assert registry.get_stage(StageId.JOURNEY).required is False
        assert StageId.JOURNEY not in registry.required_stage_ids
        assert len(registry.required_stage_ids) == 5

    def test_unknown_optional_stage_raises(self):
        with pytest.raises(ValueError):
            build_registry(optional_stages=["HOMEWORK"])
