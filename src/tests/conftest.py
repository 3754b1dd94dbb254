"""
Shared test fixtures and utilities for ALF Coach tests.

This module provides:
- Seeded narrative and engine fixtures
- Store and context fixtures at various points of a session
- Config fixtures that never read the real environment
- Mock OpenAI client fixtures
"""

import os
import sys
import random
import pytest
from unittest.mock import Mock

# Add src to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# =============================================================================
# Dependency Checking
# =============================================================================

def check_tiktoken_available():
    """Check if tiktoken can load its encoding (first use may need network)."""
    try:
        import tiktoken
        tiktoken.get_encoding("cl100k_base")
        return True
    except Exception:
        return False


TIKTOKEN_AVAILABLE = check_tiktoken_available()

requires_tiktoken = pytest.mark.skipif(
    not TIKTOKEN_AVAILABLE,
    reason="tiktoken encoding not available"
)


# =============================================================================
# Sample Inputs
# =============================================================================

# One valid input per stage, each long enough to be accepted on the first try
VALID_INPUTS = {
    "CONTEXT": "I teach 7th grade science students",
    "BIG_IDEA": "Water as a shared community resource",
    "ESSENTIAL_QUESTION": "How might we protect the water we all depend on?",
    "CHALLENGE": "Design a water-saving campaign for our school board",
    "JOURNEY": "Investigate: site visit, interviews\nPrototype: posters\nPresent: pitch",
    "DELIVERABLES": "Campaign poster artifact, draft review, final pitch, criteria: evidence",
}


# =============================================================================
# Fixtures: Config
# =============================================================================

@pytest.fixture
def mock_llm_config():
    """LLMConfig that does not depend on environment variables."""
    from config import LLMConfig
    return LLMConfig(
        base_url="https://test.api.com",
        model="test-coach",
        temperature=0.5,
        enabled=False,
    )


@pytest.fixture
def mock_app_config(mock_llm_config):
    from config import AppConfig
    return AppConfig(llm=mock_llm_config)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every environment variable the config layer reads."""
    for key in (
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "COACH_MODEL_NAME",
        "COACH_TEMPERATURE",
        "COACH_ENABLED",
        "COACH_LOG_LEVEL",
    ):
        # setenv first so keys load_config() adds are removed on teardown
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


# =============================================================================
# Fixtures: Engine and Store
# =============================================================================

@pytest.fixture
def narrative():
    """NarrativeGenerator with a pinned random source."""
    from narrative import NarrativeGenerator
    return NarrativeGenerator(rng=random.Random(42))


@pytest.fixture
def engine(narrative):
    from workflow import ConversationEngine
    return ConversationEngine(narrative=narrative)


@pytest.fixture
def sample_context():
    from state import ProjectContext
    return ProjectContext(subject="Science", grade_level="7th grade", duration="4 weeks")


@pytest.fixture
def store():
    """Fresh store at the first stage."""
    from workflow import create_store
    return create_store()


@pytest.fixture
def context_store(sample_context):
    """Fresh store with subject and grade level already known."""
    from workflow import create_store
    return create_store(sample_context)


@pytest.fixture
def store_at_challenge(engine, context_store):
    """Store advanced through the first three stages."""
    for stage in ("CONTEXT", "BIG_IDEA", "ESSENTIAL_QUESTION"):
        response = engine.process_input(context_store, VALID_INPUTS[stage])
        assert response.stage_complete, response.message
    return context_store


@pytest.fixture
def finished_store(engine, context_store):
    """Store that has completed every stage."""
    for stage in ("CONTEXT", "BIG_IDEA", "ESSENTIAL_QUESTION", "CHALLENGE", "JOURNEY", "DELIVERABLES"):
        response = engine.process_input(context_store, VALID_INPUTS[stage])
        assert response.stage_complete, response.message
    return context_store


# =============================================================================
# Fixtures: LLM
# =============================================================================

@pytest.fixture
def mock_openai_client():
    """Create a mock OpenAI client."""
    mock_client = Mock()
    mock_completion = Mock()
    mock_completion.choices = [Mock(message=Mock(content="Mock coaching reply"))]
    mock_completion.usage = Mock(prompt_tokens=10, completion_tokens=5)
    mock_client.chat.completions.create.return_value = mock_completion
    return mock_client


@pytest.fixture
def mock_llm_client(mock_llm_config, mock_openai_client):
    """Create an LLMClient backed by the mock OpenAI client."""
    from unittest.mock import patch

    with patch('llm.OpenAI', return_value=mock_openai_client):
        from llm import LLMClient
        client = LLMClient(mock_llm_config)
        return client
