"""
Error taxonomy for the stage engine.

Two kinds of problems exist:

- Expected user states (bad input, low confidence, finished session). These
  are never raised. They come back to the caller as data, tagged with one of
  the failure codes below on ``EngineResponse.error_code``.
- Programming and configuration faults (unknown stage, broken registry chain,
  violated state invariant, re-entrant mutation). These are raised.
"""

# Failure codes carried on EngineResponse.error_code
VALIDATION_FAILURE = "validation_failure"
SESSION_TERMINAL = "session_terminal"
NOTHING_PENDING = "nothing_pending"

FAILURE_CODES = frozenset({VALIDATION_FAILURE, SESSION_TERMINAL, NOTHING_PENDING})


class CoachEngineError(Exception):
    """Base class for all fatal engine errors."""


class UnknownStageError(CoachEngineError, KeyError):
    """Raised when a stage id is not present in the registry."""

    def __init__(self, stage_id):
        self.stage_id = stage_id
        super().__init__(f"Unknown stage: {stage_id!r}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return self.args[0]


class RegistryConfigError(CoachEngineError):
    """Raised when the stage table is malformed (duplicates, cycles, dangling links)."""


class StateInvariantError(CoachEngineError):
    """Raised when a patch would leave ConversationState inconsistent."""


class ReentrancyViolation(CoachEngineError):
    """Raised when a store listener tries to mutate state during notification."""
