"""
ALF Coach: stage and confirmation engine for project-based learning design.

A teacher designs a unit through a fixed chain of stages (context, big idea,
essential question, challenge, learning journey, deliverables). Each input is
validated, scored for confidence, and either applied, held for confirmation,
or returned with guidance.

Key design principles:
1. No global mutable state - each session's state lives in a ConversationStore
2. State is immutable; transitions are planned as patches and applied in one step
3. Expected user problems are returned as data; only programming faults raise
4. Text generation never decides transitions

Modules:
- state.py: ConversationState, ProjectContext, PendingConfirmation, StatePatch
- config.py: Immutable AppConfig, ValidationRules, ClassifierConfig, LLMConfig
- validators/: Per-stage input heuristics
- registry.py: StageRegistry and the default stage chain
- classifier.py: Confidence ladder (immediate / review / refine)
- narrative.py: NarrativeGenerator for acknowledgments and refinement options
- store.py: ConversationStore with observer notification
- workflow.py: ConversationEngine and transition planning
- blueprint.py: Structured project summary and readiness status
- llm.py: LLMClient, ConversationManager for optional coaching replies
- session.py: DesignSession host wrapper
- main.py: CLI and programmatic entry points
"""

from state import ConversationState, ProjectContext, StageId, ConfirmationLevel, InputSource
from config import AppConfig, load_config
from registry import StageRegistry, build_registry
from store import ConversationStore
from workflow import ConversationEngine, EngineResponse, create_store, process_input
from session import DesignSession
from main import run_turns

__all__ = [
    # State
    "ConversationState",
    "ProjectContext",
    "StageId",
    "ConfirmationLevel",
    "InputSource",
    # Config
    "AppConfig",
    "load_config",
    # Registry
    "StageRegistry",
    "build_registry",
    # Store
    "ConversationStore",
    # Workflow
    "ConversationEngine",
    "EngineResponse",
    "create_store",
    "process_input",
    # Session
    "DesignSession",
    # Main
    "run_turns",
]
